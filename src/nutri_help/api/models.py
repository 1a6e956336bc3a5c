"""Pydantic models for local API request bodies."""

from pydantic import BaseModel


class ResetRequest(BaseModel):
    """Answer to the reset confirmation prompt."""

    confirm: bool = False


class ChatRequest(BaseModel):
    """Question typed into the assistant tab."""

    message: str
