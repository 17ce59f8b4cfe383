"""In-process session holder for the API.

The host drives exactly one session. The credential/model-selection action
is modelled as a flag: the session's callback raises it, the front end reads
it from GET /api/session, opens its key picker, and acknowledges it.
"""

import logging
from typing import Any

from staya.dispatch import dispatcher_from_config
from staya.session import Session

logger = logging.getLogger(__name__)

_session: Session | None = None
_credential_action_requested = False


def request_credential_action() -> None:
    global _credential_action_requested
    logger.info("credential/model selection requested")
    _credential_action_requested = True


def credential_action_requested() -> bool:
    return _credential_action_requested


def clear_credential_action() -> None:
    global _credential_action_requested
    _credential_action_requested = False


def init_session(config: dict[str, Any]) -> Session:
    global _session
    clear_credential_action()
    _session = Session(
        dispatcher=dispatcher_from_config(config),
        on_credential_action=request_credential_action,
        require_complete_dossier=bool(config["require_complete_dossier"]),
    )
    return _session


def get_session() -> Session:
    assert _session is not None, "Call init_session() before using the session"
    return _session


def apply_config(config: dict[str, Any]) -> None:
    """Swap in a dispatcher built from new settings; history is kept."""
    session = get_session()
    session.dispatcher = dispatcher_from_config(config)
    session.require_complete_dossier = bool(config["require_complete_dossier"])
