import logging
import os

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import NotFound
from app.dependencies import CurrentUser, get_current_user, get_dispute_gateway
from app.middlewares.rate_limit import limiter
from app.schemas.packet import GeneratePacketOut, LatestPacketOut, PacketHistoryOut
from app.services import file_storage
from app.services.packet_builder import generate_packet
from app.services.packets import get_latest_packet, get_packet, list_packets
from app.services.stripe_gateway import DisputeGateway

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


def _to_out(row) -> dict:
    return {
        "id": row.id,
        "dispute_id": row.dispute_id,
        "filename": row.filename,
        "created_at": row.created_at,
    }


def download_url(packet_id: int) -> str:
    return f"{settings.api_prefix.rstrip('/')}/packets/download/{packet_id}"


@router.post("/{dispute_id}", response_model=GeneratePacketOut)
@limiter.limit(settings.packet_rate_limit)
def create_dispute_packet(
    request: Request,
    dispute_id: str,
    user: CurrentUser = Depends(get_current_user),
    gateway: DisputeGateway = Depends(get_dispute_gateway),
    db: Session = Depends(get_db),
):
    result = generate_packet(db, gateway, user_id=user.id, dispute_id=dispute_id)
    return {"ok": True, "packet_id": result.packet.id, "download_url": download_url(result.packet.id)}


@router.get("/latest/{dispute_id}", response_model=LatestPacketOut)
def latest_packet(
    dispute_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = get_latest_packet(db, user_id=user.id, dispute_id=dispute_id)
    return {"packet": _to_out(row) if row else None}


@router.get("/history/{dispute_id}", response_model=PacketHistoryOut)
def packet_history(
    dispute_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = list_packets(db, user_id=user.id, dispute_id=dispute_id)
    return {"packets": [_to_out(row) for row in rows]}


@router.get("/download/{packet_id}")
def download_packet(
    packet_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    text = str(packet_id or "").strip()
    row = get_packet(db, user_id=user.id, packet_id=int(text)) if text.isdigit() else None
    if not row:
        raise NotFound("Packet not found")

    path = file_storage.resolve_path(row.filename)
    if not path.is_file():
        logger.warning("Packet id=%s file missing at %s", row.id, path)
        raise NotFound("Packet file missing on server")

    return FileResponse(
        path,
        media_type="application/pdf",
        filename=os.path.basename(row.filename),
    )
