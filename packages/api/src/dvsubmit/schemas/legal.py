# This project was developed with assistance from AI tools.
"""Legal acknowledgment schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class AcknowledgmentRequest(BaseModel):
    version: str = Field(min_length=1, max_length=50)
    document_type: Literal["terms", "privacy", "disclaimer"] = "terms"


class AcknowledgmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    document_type: str
    version: str
    acknowledged_at: datetime
