import enum

from sqlalchemy import BigInteger, Column, Enum, Index, Integer, String

from app.core.database import Base
from app.models.base import TimestampMixin


class EvidenceKind(str, enum.Enum):
    INVOICE = "invoice"
    TRACKING = "tracking"
    CHAT = "chat"
    TOS = "tos"
    SCREENSHOT = "screenshot"
    OTHER = "other"


class EvidenceFile(Base, TimestampMixin):
    __tablename__ = "evidence_files"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    dispute_id = Column(String(64), nullable=False)
    kind = Column(Enum(EvidenceKind, values_callable=lambda e: [m.value for m in e], name="evidencekind"), nullable=False)
    filename = Column(String(255), nullable=False)
    stored_path = Column(String(512), nullable=False)
    size_bytes = Column(BigInteger, nullable=False, default=0)


Index("ix_evidence_files_user_dispute", EvidenceFile.user_id, EvidenceFile.dispute_id)
