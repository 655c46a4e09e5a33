from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import ValidationError
from app.dependencies import CurrentUser, get_current_user, get_dispute_gateway
from app.schemas.dispute import DashboardOut, DisputeDetailOut, DisputeListOut, EvidenceTemplateOut
from app.schemas.explanation import ExplanationEnvelope, ExplanationIn
from app.services.dashboard import build_dashboard_summary
from app.services.evidence_templates import resolve_evidence_template
from app.services.explanations import get_explanation, upsert_explanation
from app.services.stripe_gateway import DEFAULT_LIST_LIMIT, DISPUTE_STATUSES, DisputeGateway, summarize_dispute

router = APIRouter()


def _explanation_out(row) -> dict:
    if not row:
        return {"explanation": None}
    return {"explanation": {"text": row.explanation, "updated_at": row.updated_at}}


def _template_out(reason: str) -> dict:
    template = resolve_evidence_template(reason)
    return {"reason": reason, **template}


@router.get("", response_model=DisputeListOut, dependencies=[Depends(get_current_user)])
def list_disputes(
    limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1, le=100),
    status: str | None = Query(default=None),
    reason: str | None = Query(default=None),
    gateway: DisputeGateway = Depends(get_dispute_gateway),
):
    status_filter = (status or "").strip().lower() or None
    if status_filter and status_filter not in DISPUTE_STATUSES:
        raise ValidationError(f"Unknown dispute status: {status}")
    reason_filter = (reason or "").strip().lower() or None

    items = gateway.list_disputes(limit=limit)
    if status_filter:
        items = [d for d in items if d.status == status_filter]
    if reason_filter:
        items = [d for d in items if d.reason == reason_filter]
    return {"disputes": [summarize_dispute(d) for d in items]}


@router.get("/summary", response_model=DashboardOut, dependencies=[Depends(get_current_user)])
def dispute_dashboard(gateway: DisputeGateway = Depends(get_dispute_gateway)):
    return build_dashboard_summary(gateway.list_disputes())


@router.get("/{dispute_id}", response_model=DisputeDetailOut, dependencies=[Depends(get_current_user)])
def get_dispute(
    dispute_id: str,
    gateway: DisputeGateway = Depends(get_dispute_gateway),
):
    dispute = gateway.retrieve_dispute(dispute_id)
    return {"dispute": dispute.raw, "template": _template_out(dispute.reason)}


@router.get(
    "/{dispute_id}/template", response_model=EvidenceTemplateOut, dependencies=[Depends(get_current_user)]
)
def get_dispute_template(
    dispute_id: str,
    gateway: DisputeGateway = Depends(get_dispute_gateway),
):
    dispute = gateway.retrieve_dispute(dispute_id)
    return _template_out(dispute.reason)


@router.get("/{dispute_id}/explanation", response_model=ExplanationEnvelope)
def read_explanation(
    dispute_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _explanation_out(get_explanation(db, user_id=user.id, dispute_id=dispute_id))


@router.put("/{dispute_id}/explanation", response_model=ExplanationEnvelope)
def save_explanation(
    dispute_id: str,
    payload: ExplanationIn,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = upsert_explanation(db, user_id=user.id, dispute_id=dispute_id, text=payload.text)
    return _explanation_out(row)
