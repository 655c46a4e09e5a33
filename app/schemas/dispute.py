from typing import Any, Optional

from pydantic import BaseModel


class DisputeSummaryOut(BaseModel):
    id: str
    charge: Optional[str] = None
    reason: str
    amount: int
    currency: str
    status: str
    created_at: int
    due_by: Optional[int] = None


class DisputeListOut(BaseModel):
    disputes: list[DisputeSummaryOut]


class EvidenceTemplateOut(BaseModel):
    reason: str
    required: list[str]
    optional: list[str]


class DisputeDetailOut(BaseModel):
    dispute: dict[str, Any]
    template: EvidenceTemplateOut


class DashboardOut(BaseModel):
    total: int
    open: int
    amount_at_risk: dict[str, int]
    won: int
    lost: int
    win_rate: int
    nearest_due_by: Optional[int] = None
    recent: list[DisputeSummaryOut]
