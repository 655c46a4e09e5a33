from sqlalchemy.orm import Session

from app.models import PdfPacket


def get_latest_packet(db: Session, *, user_id: str, dispute_id: str) -> PdfPacket | None:
    return (
        db.query(PdfPacket)
        .filter(PdfPacket.user_id == user_id, PdfPacket.dispute_id == dispute_id)
        .order_by(PdfPacket.created_at.desc(), PdfPacket.id.desc())
        .first()
    )


def list_packets(db: Session, *, user_id: str, dispute_id: str, limit: int = 50) -> list[PdfPacket]:
    return (
        db.query(PdfPacket)
        .filter(PdfPacket.user_id == user_id, PdfPacket.dispute_id == dispute_id)
        .order_by(PdfPacket.created_at.desc(), PdfPacket.id.desc())
        .limit(limit)
        .all()
    )


def create_packet(db: Session, *, user_id: str, dispute_id: str, filename: str) -> PdfPacket:
    row = PdfPacket(user_id=user_id, dispute_id=dispute_id, filename=filename)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_packet(db: Session, *, user_id: str, packet_id: int) -> PdfPacket | None:
    return (
        db.query(PdfPacket)
        .filter(PdfPacket.id == packet_id, PdfPacket.user_id == user_id)
        .first()
    )
