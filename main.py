"""Volchya Staya: dev launcher. Starts the session API in watch mode."""

import argparse
import os
import signal
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
BACKEND_PORT = os.getenv("BACKEND_PORT", "13013")


def main():
    parser = argparse.ArgumentParser(description="Volchya Staya dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Config directory (default: ./data)")
    parser.add_argument("--models", default=None,
                        help="Comma-separated candidate models, best first")
    parser.add_argument("--mcp", action="store_true",
                        help="Also start the roster MCP server (stdio)")
    args = parser.parse_args()

    # Build env for subprocesses so the backend picks up the same settings
    env = os.environ.copy()
    if args.data_dir:
        env["DATA_DIR"] = str(args.data_dir.resolve())
    if args.models:
        env["STAYA_MODELS"] = args.models

    procs: list[subprocess.Popen] = []

    def shutdown(*_):
        print("\nShutting down...")
        for p in procs:
            p.terminate()
        for p in procs:
            p.wait()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    print(f"Starting session API on http://localhost:{BACKEND_PORT} ...")
    procs.append(subprocess.Popen(
        ["uv", "run", "uvicorn", "backend.app:app", "--reload", "--host", HOST, "--port", BACKEND_PORT],
        cwd=ROOT, env=env,
    ))

    if args.mcp:
        print("Starting roster MCP server ...")
        procs.append(subprocess.Popen(
            ["uv", "run", "python", "-m", "staya.mcp_server"],
            cwd=ROOT, env=env,
        ))

    for p in procs:
        p.wait()


if __name__ == "__main__":
    main()
