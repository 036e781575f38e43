"""
move_forge/models/assistant.py
Request models for the conversational DeFi assistant.
"""

from typing import Literal

from pydantic import BaseModel, Field


class ChatTurn(BaseModel):
    """One earlier message of an assistant conversation."""
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """API request for the next assistant reply."""
    message: str = Field(..., min_length=1, max_length=20_000)
    history: list[ChatTurn] = Field(default_factory=list, description="Oldest first")


class ExplainRequest(BaseModel):
    concept: str = Field(..., min_length=1, max_length=500)


class RecommendationRequest(BaseModel):
    context: str = Field(
        ...,
        min_length=1,
        max_length=5_000,
        description="Experience, goals and risk appetite in the user's own words",
    )
