"""
Shared FastAPI dependencies.
"""

from datetime import datetime, timezone

from fastapi import Request

from config.settings import Settings


def get_app_settings(request: Request) -> Settings:
    """Settings the application was built with (see main.create_app)."""
    return request.app.state.settings


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
