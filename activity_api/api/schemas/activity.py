from datetime import date
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


ProviderStatus = Literal["ok", "error", "not_configured"]


class ActivityDay(BaseModel):
    """Combined contribution counts of both providers for one UTC day."""

    model_config = ConfigDict(frozen=True)

    date: date
    github: int = Field(default=0, ge=0)
    gitlab: int = Field(default=0, ge=0)


class ErrorResponse(BaseModel):
    """Error payload returned for rejected or failed requests."""

    error: str
