from app.services.stripe_gateway import OPEN_STATUSES, Dispute, summarize_dispute

RECENT_LIMIT = 5


def build_dashboard_summary(disputes: list[Dispute]) -> dict:
    open_disputes = [d for d in disputes if d.status in OPEN_STATUSES]
    won = sum(1 for d in disputes if d.status == "won")
    lost = sum(1 for d in disputes if d.status == "lost")
    decided = won + lost

    # Amounts in different currencies are not summed together.
    at_risk: dict[str, int] = {}
    for d in open_disputes:
        currency = (d.currency or "").lower()
        at_risk[currency] = at_risk.get(currency, 0) + int(d.amount)

    due_dates = sorted(d.due_by for d in disputes if d.due_by)
    recent = sorted(disputes, key=lambda d: d.created, reverse=True)[:RECENT_LIMIT]

    return {
        "total": len(disputes),
        "open": len(open_disputes),
        "amount_at_risk": at_risk,
        "won": won,
        "lost": lost,
        "win_rate": round(won / decided * 100) if decided else 0,
        "nearest_due_by": due_dates[0] * 1000 if due_dates else None,
        "recent": [summarize_dispute(d) for d in recent],
    }
