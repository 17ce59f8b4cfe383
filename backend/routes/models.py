"""Pydantic request/response models for API endpoints."""

from pydantic import BaseModel

from staya.models import Dossier, SessionPhase, TranscriptEntry


class DossierBody(BaseModel):
    name: str = ""
    age: str = ""
    appearance: str = ""
    personality: str = ""
    role: str = ""

    def to_dossier(self) -> Dossier:
        return Dossier(**self.model_dump())


class ChatBody(BaseModel):
    message: str


class UpdateSettings(BaseModel):
    provider_format: str | None = None
    provider_url: str | None = None
    models: list[str] | None = None
    api_key_env: list[str] | None = None
    temperature: float | None = None
    timeout: float | None = None
    transient_retries: int | None = None
    history_window: int | None = None
    require_complete_dossier: bool | None = None


class SessionStatus(BaseModel):
    phase: SessionPhase
    dossier: Dossier
    in_flight: bool
    credential_action_requested: bool
    format_version: int


class TurnResult(BaseModel):
    accepted: bool
    messages: list[TranscriptEntry]
