from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class PdfPacketOut(BaseModel):
    id: int
    dispute_id: str
    filename: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LatestPacketOut(BaseModel):
    packet: Optional[PdfPacketOut] = None


class PacketHistoryOut(BaseModel):
    packets: list[PdfPacketOut]


class GeneratePacketOut(BaseModel):
    ok: bool = True
    packet_id: int
    download_url: str
