import os
import shutil
from pathlib import Path

import pytest

TEST_DATA_DIR = Path("data-tests")

# backend.app builds its default instance at import time
os.environ.setdefault("DATA_DIR", str(TEST_DATA_DIR))

from staya import config  # noqa: E402

_AMBIENT_ENV = (
    "GEMINI_API_KEY",
    "API_KEY",
    "STAYA_MODELS",
    "STAYA_PROVIDER_URL",
    "STAYA_PROVIDER_FORMAT",
    "STAYA_API_KEY_ENV",
)


@pytest.fixture(autouse=True)
def clean_test_data(monkeypatch):
    """Wipe and re-init data-tests/ and the credential env before every test."""
    for name in _AMBIENT_ENV:
        monkeypatch.delenv(name, raising=False)
    if TEST_DATA_DIR.exists():
        shutil.rmtree(TEST_DATA_DIR)
    config.init_config(TEST_DATA_DIR)
    yield
    # leave data-tests around after tests for inspection; CI can ignore it
