"""
Local helper server.

Runs on the machine to be registered and exposes a single endpoint that
launches the inventory command, waits for it to exit and relays its stdout.

    uvicorn cmdb.helper_server:app --port 3001
"""

from __future__ import annotations
from dotenv import load_dotenv
load_dotenv(dotenv_path=".env")

import logging
import subprocess
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cmdb import config
from cmdb.logging_config import setup_logging
from cmdb.schemas import ActionResult

logger = logging.getLogger(__name__)

WORK_DIR = Path(__file__).resolve().parent.parent

app = FastAPI(
    title="CMDB Registration Helper",
    version="0.3.0",
    description="Triggers the local inventory script for machine registration.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_methods=["POST"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    setup_logging("helper", level=config.log_level(), log_file=config.log_file())


def _failure(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content=ActionResult(success=False, message=message).model_dump())


@app.post("/register-machine", response_model=ActionResult)
def register_machine():
    command = config.helper_command()
    logger.info("Registration requested, running: %s", " ".join(command))

    try:
        proc = subprocess.run(
            command,
            cwd=WORK_DIR,
            capture_output=True,
            text=True,
            timeout=config.helper_timeout(),
        )
    except OSError as e:
        logger.error("Could not start inventory command: %s", e)
        return _failure(f"Could not start inventory command: {e}")
    except subprocess.TimeoutExpired:
        logger.error("Inventory command timed out after %ss", config.helper_timeout())
        return _failure(f"Inventory command timed out after {config.helper_timeout()}s")

    if proc.stderr:
        logger.warning("Inventory stderr: %s", proc.stderr.strip())

    if proc.returncode != 0:
        lines = (proc.stderr or proc.stdout).strip().splitlines()
        message = lines[-1] if lines else f"exit status {proc.returncode}"
        logger.error("Inventory command failed: %s", message)
        return _failure(f"Inventory command failed: {message}")

    logger.info("Inventory output: %s", proc.stdout.strip())
    return ActionResult(success=True, message=proc.stdout)


def main() -> None:
    uvicorn.run(app, host="127.0.0.1", port=config.helper_port())


if __name__ == "__main__":
    main()
