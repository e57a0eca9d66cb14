import os
import shlex
import sys
from typing import List


def _int_env(name: str, default: int) -> int:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return int(raw)
    except ValueError:
        return default


def _list_env(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def database_url() -> str:
    return os.getenv("DATABASE_URL", "sqlite:///./cmdb.db")


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def log_file() -> str | None:
    return os.getenv("LOG_FILE") or None


def cors_origins() -> List[str]:
    return _list_env("CORS_ORIGINS", "*")


def helper_url() -> str:
    return os.getenv("HELPER_URL", "http://localhost:3001").rstrip("/")


def helper_port() -> int:
    return _int_env("HELPER_PORT", 3001)


def helper_command() -> List[str]:
    raw = os.getenv("HELPER_COMMAND")
    if raw:
        return shlex.split(raw)
    return [sys.executable, "-m", "cmdb.inventory", "--send"]


def helper_timeout() -> int:
    return _int_env("HELPER_TIMEOUT", 120)


def webhook_timeout() -> int:
    return _int_env("WEBHOOK_TIMEOUT", 10)


def registration_webhook_url() -> str | None:
    return os.getenv("REGISTRATION_WEBHOOK_URL") or None


def server_registration_webhook_url() -> str | None:
    return os.getenv("SERVER_REGISTRATION_WEBHOOK_URL") or None
