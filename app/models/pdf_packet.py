from sqlalchemy import Column, Index, Integer, String

from app.core.database import Base
from app.models.base import TimestampMixin


class PdfPacket(Base, TimestampMixin):
    __tablename__ = "pdf_packets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    dispute_id = Column(String(64), nullable=False)
    # Path of the written PDF, relative to the storage root.
    filename = Column(String(512), nullable=False)


Index("ix_pdf_packets_user_dispute_created", PdfPacket.user_id, PdfPacket.dispute_id, PdfPacket.created_at)
