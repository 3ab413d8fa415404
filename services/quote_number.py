"""Quote number generation."""

from datetime import datetime


def generate_quote_number(existing_count: int, now: datetime) -> str:
    """
    Build the candidate quote number ``Q{YY}{MM}-{seq:04d}``.

    Year and month come from ``now`` (the moment of allocation) and the
    sequence is ``existing_count + 1``. Uniqueness is enforced by the
    persistence layer, not here.
    """
    if existing_count < 0:
        raise ValueError("existing_count must not be negative")
    return f"Q{now:%y%m}-{existing_count + 1:04d}"
