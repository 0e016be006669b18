"""
Pydantic models for the generate path.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GenerateRequestBody(BaseModel):
    """Inbound JSON body for POST /api/generate."""

    prompt: Optional[str] = Field(default=None, description="Prompt text to forward upstream")


class GenerationRequest(BaseModel):
    """A validated prompt, wrapped in the upstream content structure on demand."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., description="Non-empty prompt text")

    @field_validator("prompt")
    @classmethod
    def _prompt_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("prompt must be a non-empty string")
        return value

    def to_payload(self) -> Dict[str, List[Dict[str, Any]]]:
        """One contents entry holding one text part."""
        return {"contents": [{"parts": [{"text": self.prompt}]}]}


class GenerationResult(BaseModel):
    """Successful upstream response with the extracted candidate text."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Joined text of the first candidate's parts")
    raw: Any = Field(..., description="Upstream JSON as received")
    model: str = Field(..., description="Model that served the request")
