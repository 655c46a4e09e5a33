from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.models.evidence_file import EvidenceKind


class EvidenceFileOut(BaseModel):
    id: int
    dispute_id: str
    kind: EvidenceKind | str
    filename: str
    stored_path: str
    size_bytes: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EvidenceListOut(BaseModel):
    evidence: list[EvidenceFileOut]


class EvidenceEnvelope(BaseModel):
    evidence: EvidenceFileOut


class DeleteOut(BaseModel):
    ok: bool = True
