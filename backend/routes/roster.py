"""Key personnel roster endpoints (briefing phase)."""

from fastapi import APIRouter, HTTPException

from staya import roster

router = APIRouter()


@router.get("/roster")
async def list_roster():
    """List the key personnel."""
    return roster.list_roster()


@router.get("/roster/{name}")
async def get_roster_entry(name: str):
    """Get one NPC by name or alias."""
    found = roster.lookup([name])
    if not found:
        raise HTTPException(404, "Roster entry not found")
    return found[0]
