import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import InternalError, NotFound, ValidationError
from app.dependencies import CurrentUser, get_current_user
from app.middlewares.rate_limit import limiter
from app.models import EvidenceKind
from app.schemas.evidence import DeleteOut, EvidenceEnvelope, EvidenceListOut
from app.services import file_storage
from app.services.evidence import create_evidence_file, delete_evidence_file, get_evidence_file, list_evidence_files

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


def _coerce_kind(raw: str | None) -> EvidenceKind:
    value = str(raw or "").strip().lower()
    for kind in EvidenceKind:
        if value == kind.value:
            return kind
    allowed = ", ".join(k.value for k in EvidenceKind)
    raise ValidationError(f"Invalid evidence kind. Expected one of: {allowed}")


def _parse_id(raw: str) -> int:
    text = str(raw or "").strip()
    if not text.isdigit():
        raise NotFound("Evidence not found")
    return int(text)


def _to_out(row) -> dict:
    return {
        "id": row.id,
        "dispute_id": row.dispute_id,
        "kind": row.kind.value if hasattr(row.kind, "value") else str(row.kind),
        "filename": row.filename,
        "stored_path": row.stored_path,
        "size_bytes": int(row.size_bytes or 0),
        "created_at": row.created_at,
    }


@router.get("/{dispute_id}", response_model=EvidenceListOut)
def list_evidence(
    dispute_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = list_evidence_files(db, user_id=user.id, dispute_id=dispute_id)
    return {"evidence": [_to_out(row) for row in rows]}


@router.post("/{dispute_id}/upload", response_model=EvidenceEnvelope)
@limiter.limit(settings.upload_rate_limit)
def upload_evidence(
    request: Request,
    dispute_id: str,
    file: UploadFile | None = File(default=None),
    kind: str | None = Form(default=None),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    evidence_kind = _coerce_kind(kind)
    if file is None or not (file.filename or "").strip():
        raise ValidationError("No file uploaded")

    max_bytes = int(settings.max_upload_bytes)
    if file.size is not None and file.size > max_bytes:
        logger.info("Rejected upload for dispute=%s: %s bytes over limit", dispute_id, file.size)
        raise ValidationError(f"File too large. Maximum upload size is {max_bytes} bytes.")

    try:
        stored_path, size = file_storage.save_upload(file.file, content_type=file.content_type, max_bytes=max_bytes)
    except ValidationError as exc:
        logger.info("Rejected upload for dispute=%s (%s): %s", dispute_id, file.content_type, exc.message)
        raise
    except OSError as exc:
        logger.error("Failed to store upload for dispute=%s: %s", dispute_id, exc)
        raise InternalError("Failed to store uploaded file") from exc

    try:
        row = create_evidence_file(
            db,
            user_id=user.id,
            dispute_id=dispute_id,
            kind=evidence_kind,
            filename=file.filename,
            stored_path=stored_path,
            size_bytes=size,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        file_storage.remove_file(stored_path)
        logger.error("Failed to record evidence for dispute=%s: %s", dispute_id, exc)
        raise InternalError("Failed to upload evidence") from exc

    logger.info("Stored evidence id=%s dispute=%s kind=%s size=%s", row.id, dispute_id, evidence_kind.value, size)
    return {"evidence": _to_out(row)}


@router.delete("/{evidence_id}", response_model=DeleteOut)
def delete_evidence(
    evidence_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = get_evidence_file(db, user_id=user.id, evidence_id=_parse_id(evidence_id))
    if not row:
        raise NotFound("Evidence not found")
    stored_path = row.stored_path
    delete_evidence_file(db, user_id=user.id, evidence_id=row.id)
    file_storage.remove_file(stored_path)
    return {"ok": True}
