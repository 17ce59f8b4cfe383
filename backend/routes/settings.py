"""Health check and settings endpoints."""

from fastapi import APIRouter, HTTPException

from backend import state
from staya import config

from .models import UpdateSettings

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings():
    """Get endpoint, candidate models and session rules."""
    return config.get_config()


@router.patch("/settings")
async def update_settings(body: UpdateSettings):
    """Update settings (partial merge) and rebuild the session dispatcher."""
    fields = body.model_dump(exclude_none=True)
    if "models" in fields and not fields["models"]:
        raise HTTPException(400, "At least one candidate model is required")
    if fields.get("provider_format", "gemini") not in ("gemini", "openai"):
        raise HTTPException(400, "provider_format must be 'gemini' or 'openai'")
    updated = config.update_config(fields)
    state.apply_config(updated)
    return updated
