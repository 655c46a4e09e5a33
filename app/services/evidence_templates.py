"""Evidence checklists per Stripe dispute reason."""

GENERAL_REASON = "general"

EVIDENCE_TEMPLATES: dict[str, dict[str, tuple[str, ...]]] = {
    "fraudulent": {
        "required": ("Invoice", "Customer communication", "Proof of delivery"),
        "optional": ("Shipping tracking", "Customer login history", "Terms of service"),
    },
    "product_not_received": {
        "required": ("Shipping tracking", "Proof of delivery", "Invoice"),
        "optional": ("Customer communication", "Return policy"),
    },
    "unrecognized": {
        "required": ("Invoice", "Customer communication", "Proof of delivery"),
        "optional": ("Customer login history", "Terms of service"),
    },
    "duplicate": {
        "required": ("Invoice", "Payment receipt", "Customer communication"),
        "optional": ("Order confirmation", "Shipping tracking"),
    },
    "subscription_canceled": {
        "required": ("Terms of service", "Cancellation policy", "Customer communication"),
        "optional": ("Invoice", "Usage logs"),
    },
    "product_unacceptable": {
        "required": ("Product description", "Customer communication", "Return policy"),
        "optional": ("Invoice", "Proof of delivery"),
    },
    "credit_not_processed": {
        "required": ("Refund receipt", "Customer communication"),
        "optional": ("Invoice", "Return tracking"),
    },
    GENERAL_REASON: {
        "required": ("Invoice", "Customer communication"),
        "optional": ("Terms of service", "Proof of delivery"),
    },
}


def resolve_evidence_template(reason: str | None) -> dict[str, list[str]]:
    template = EVIDENCE_TEMPLATES.get(str(reason or "").strip()) or EVIDENCE_TEMPLATES[GENERAL_REASON]
    return {
        "required": list(template["required"]),
        "optional": list(template["optional"]),
    }
