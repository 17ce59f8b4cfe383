"""FastAPI API endpoints under /api.

Endpoint groups: health + settings, roster, and the session itself
(dossier intake, deploy, chat, retry, reset, transcript, credential-action
flag). The host drives a single in-process session.
"""

from fastapi import APIRouter

from .roster import router as roster_router
from .session import router as session_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(roster_router)
router.include_router(session_router)
