import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.models import DisputeExplanation
from app.models.base import utcnow

logger = logging.getLogger(__name__)


def get_explanation(db: Session, *, user_id: str, dispute_id: str) -> DisputeExplanation | None:
    return (
        db.query(DisputeExplanation)
        .filter(DisputeExplanation.user_id == user_id, DisputeExplanation.dispute_id == dispute_id)
        .first()
    )


def _update(db: Session, row: DisputeExplanation, text: str) -> DisputeExplanation:
    row.explanation = text
    row.updated_at = utcnow()
    db.commit()
    db.refresh(row)
    return row


def upsert_explanation(db: Session, *, user_id: str, dispute_id: str, text: str | None) -> DisputeExplanation:
    body = str(text or "").strip()
    if not body:
        raise ValidationError("Explanation text is required")

    existing = get_explanation(db, user_id=user_id, dispute_id=dispute_id)
    if existing:
        return _update(db, existing, body)

    row = DisputeExplanation(user_id=user_id, dispute_id=dispute_id, explanation=body)
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the (user, dispute) row first.
        db.rollback()
        logger.info("Explanation insert lost race for dispute=%s; updating instead", dispute_id)
        existing = get_explanation(db, user_id=user_id, dispute_id=dispute_id)
        if not existing:
            raise
        return _update(db, existing, body)
    db.refresh(row)
    return row
