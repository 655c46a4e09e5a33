from sqlalchemy.orm import Session

from app.models import EvidenceFile, EvidenceKind


def list_evidence_files(db: Session, *, user_id: str, dispute_id: str) -> list[EvidenceFile]:
    return (
        db.query(EvidenceFile)
        .filter(EvidenceFile.user_id == user_id, EvidenceFile.dispute_id == dispute_id)
        .order_by(EvidenceFile.created_at.asc(), EvidenceFile.id.asc())
        .all()
    )


def create_evidence_file(
    db: Session,
    *,
    user_id: str,
    dispute_id: str,
    kind: EvidenceKind,
    filename: str,
    stored_path: str,
    size_bytes: int,
) -> EvidenceFile:
    # Metadata only; the caller has already written the blob.
    row = EvidenceFile(
        user_id=user_id,
        dispute_id=dispute_id,
        kind=kind,
        filename=filename,
        stored_path=stored_path,
        size_bytes=int(size_bytes),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_evidence_file(db: Session, *, user_id: str, evidence_id: int) -> EvidenceFile | None:
    return (
        db.query(EvidenceFile)
        .filter(EvidenceFile.id == evidence_id, EvidenceFile.user_id == user_id)
        .first()
    )


def delete_evidence_file(db: Session, *, user_id: str, evidence_id: int) -> None:
    # No-op when the row is missing or belongs to another user.
    (
        db.query(EvidenceFile)
        .filter(EvidenceFile.id == evidence_id, EvidenceFile.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
