"""Validation patterns and list helpers shared by resource schemas."""

from typing import Literal

SLUG_PATTERN = r"^[a-z0-9-]+$"
CODE_PATTERN = r"^[A-Z0-9]+$"
PHONE_PATTERN = r"^\+?[1-9]\d{0,15}$"
URL_PATTERN = r"^https?://\S+$"

SortOrder = Literal["asc", "desc"]


def reject_nulls(model, fields: tuple[str, ...]) -> None:
    """Raise ValueError when a partial update sends null for a required column."""
    nulls = [f for f in fields if f in model.model_fields_set and getattr(model, f) is None]
    if nulls:
        raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
