import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import stripe

from app.core.config import get_settings
from app.core.errors import NotFound, ServiceUnavailable, UpstreamError

logger = logging.getLogger(__name__)

DISPUTE_STATUSES = (
    "needs_response",
    "under_review",
    "warning_needs_response",
    "warning_under_review",
    "warning_closed",
    "charge_refunded",
    "lost",
    "won",
)
OPEN_STATUSES = {"needs_response", "warning_needs_response"}
DEFAULT_LIST_LIMIT = 50


def _to_plain(obj: Any) -> dict:
    if isinstance(obj, dict) and not isinstance(obj, stripe.StripeObject):
        return obj
    # StripeObject renders itself as JSON, nested objects included.
    return json.loads(str(obj))


def _ref(value: Any) -> str | None:
    # Expandable Stripe fields arrive either as an id string or an object.
    if isinstance(value, dict):
        value = value.get("id")
    text = str(value or "").strip()
    return text or None


@dataclass
class Dispute:
    id: str
    charge: str | None
    reason: str
    amount: int
    currency: str
    status: str
    created: int
    due_by: int | None = None
    payment_intent: str | None = None
    evidence: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "Dispute":
        data = _to_plain(payload)
        details = data.get("evidence_details") or {}
        payment_intent = data.get("payment_intent")
        return cls(
            id=str(data.get("id") or ""),
            charge=_ref(data.get("charge")),
            reason=str(data.get("reason") or ""),
            amount=int(data.get("amount") or 0),
            currency=str(data.get("currency") or ""),
            status=str(data.get("status") or ""),
            created=int(data.get("created") or 0),
            due_by=int(details["due_by"]) if details.get("due_by") else None,
            payment_intent=payment_intent if isinstance(payment_intent, str) else None,
            evidence=dict(data.get("evidence") or {}),
            raw=data,
        )


def summarize_dispute(dispute: Dispute) -> dict:
    return {
        "id": dispute.id,
        "charge": dispute.charge,
        "reason": dispute.reason,
        "amount": dispute.amount,
        "currency": dispute.currency,
        "status": dispute.status,
        "created_at": dispute.created * 1000,
        "due_by": dispute.due_by * 1000 if dispute.due_by else None,
    }


class DisputeGateway:
    def list_disputes(self, limit: int = DEFAULT_LIST_LIMIT) -> list[Dispute]:
        raise NotImplementedError

    def retrieve_dispute(self, dispute_id: str) -> Dispute:
        raise NotImplementedError


class StripeDisputeGateway(DisputeGateway):
    def __init__(self, api_key: str | None = None, api_base: str | None = None):
        settings = get_settings()
        self.api_key = (api_key if api_key is not None else settings.stripe_secret_key or "").strip()
        self.api_base = (api_base if api_base is not None else settings.stripe_api_base or "").strip()

    def _require_key(self) -> str:
        if not self.api_key:
            raise ServiceUnavailable("Stripe not configured")
        return self.api_key

    def _call(self, label: str, fn, *args, **kwargs):
        api_key = self._require_key()
        # One attempt per call; retry policy belongs to the caller.
        stripe.max_network_retries = 0
        if self.api_base:
            stripe.api_base = self.api_base
        start = time.time()
        try:
            return fn(*args, api_key=api_key, **kwargs)
        except stripe.InvalidRequestError as exc:
            if getattr(exc, "code", None) == "resource_missing":
                raise NotFound("Dispute not found") from exc
            logger.warning("Stripe %s failed: %s", label, exc)
            raise UpstreamError(exc.user_message or str(exc)) from exc
        except stripe.StripeError as exc:
            logger.warning("Stripe %s failed: %s", label, exc)
            raise UpstreamError(exc.user_message or str(exc)) from exc
        finally:
            duration_ms = round((time.time() - start) * 1000, 2)
            logger.info("Stripe %s duration=%sms", label, duration_ms)

    def list_disputes(self, limit: int = DEFAULT_LIST_LIMIT) -> list[Dispute]:
        bounded = max(1, min(int(limit or DEFAULT_LIST_LIMIT), 100))
        page = self._call("disputes.list", stripe.Dispute.list, limit=bounded)
        items = [Dispute.from_payload(item) for item in page.data]
        items.sort(key=lambda d: d.created, reverse=True)
        return items[:bounded]

    def retrieve_dispute(self, dispute_id: str) -> Dispute:
        obj = self._call("disputes.retrieve", stripe.Dispute.retrieve, dispute_id)
        return Dispute.from_payload(obj)
