from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ExplanationIn(BaseModel):
    text: Optional[str] = Field(default=None, max_length=20000)


class ExplanationOut(BaseModel):
    text: str
    updated_at: Optional[datetime] = None


class ExplanationEnvelope(BaseModel):
    explanation: Optional[ExplanationOut] = None
