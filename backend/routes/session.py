"""Session endpoints: dossier intake, deploy, chat, retry, reset, transcript."""

from fastapi import APIRouter, HTTPException

from backend import state
from staya.conventions import FORMAT_VERSION
from staya.session import DossierError, PhaseError

from .models import ChatBody, DossierBody, SessionStatus, TurnResult

router = APIRouter()


def _status() -> SessionStatus:
    session = state.get_session()
    return SessionStatus(
        phase=session.phase,
        dossier=session.dossier,
        in_flight=session.in_flight,
        credential_action_requested=state.credential_action_requested(),
        format_version=FORMAT_VERSION,
    )


@router.get("/session")
async def get_session_status():
    """Current phase, dossier, in-flight and credential-action flags."""
    return _status()


@router.put("/session/dossier")
async def update_dossier(body: DossierBody):
    """Edit the dossier (intake and briefing only)."""
    try:
        state.get_session().update_dossier(body.to_dossier())
    except PhaseError as e:
        raise HTTPException(409, str(e))
    return _status()


@router.post("/session/dossier")
async def submit_dossier(body: DossierBody | None = None):
    """Confirm the dossier: intake → briefing."""
    session = state.get_session()
    try:
        session.submit_dossier(body.to_dossier() if body is not None else None)
    except DossierError as e:
        raise HTTPException(400, str(e))
    except PhaseError as e:
        raise HTTPException(409, str(e))
    return _status()


@router.post("/session/deploy")
async def deploy():
    """Open the chat: briefing → chat, with the opening turn."""
    session = state.get_session()
    try:
        await session.deploy()
    except PhaseError as e:
        raise HTTPException(409, str(e))
    return TurnResult(accepted=True, messages=session.transcript())


@router.post("/session/chat")
async def chat(body: ChatBody):
    """Send one user turn. accepted=false when empty or a turn is in flight."""
    session = state.get_session()
    try:
        accepted = await session.send(body.message)
    except PhaseError as e:
        raise HTTPException(409, str(e))
    return TurnResult(accepted=accepted, messages=session.transcript())


@router.post("/session/retry")
async def retry():
    """Retry the opening turn after a failed deploy."""
    session = state.get_session()
    try:
        accepted = await session.retry()
    except PhaseError as e:
        raise HTTPException(409, str(e))
    return TurnResult(accepted=accepted, messages=session.transcript())


@router.post("/session/reset")
async def reset():
    """Back to intake; clears dossier and history."""
    state.get_session().reset()
    state.clear_credential_action()
    return _status()


@router.get("/session/messages")
async def get_messages():
    """Message history with parsed narrative segments."""
    return state.get_session().transcript()


@router.post("/session/credential-action/ack")
async def ack_credential_action():
    """The front end has opened its key/model picker."""
    state.clear_credential_action()
    return _status()
