ALLOWED_TRANSITIONS = {
    "pending": ["paid", "processing", "cancelled", "failed"],
    "paid": ["processing", "cancelled"],
    "processing": ["shipped", "cancelled", "failed"],
    "shipped": ["delivered", "failed"],
    "delivered": [],
    "failed": [],
    "cancelled": []
}


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, [])
