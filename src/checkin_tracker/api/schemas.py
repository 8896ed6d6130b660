"""Pydantic models for request payloads."""

from pydantic import BaseModel, StrictInt


class RegistrationRequest(BaseModel):
    """Attendee registration form."""

    name: str
    phone: str


class StartSessionRequest(BaseModel):
    """Admin request to start a session."""

    required_contacts: StrictInt


class LoginRequest(BaseModel):
    """Admin email/password sign-in."""

    email: str
    password: str
