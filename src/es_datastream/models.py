"""
Pydantic models for bulk responses.

Individual items stay opaque; only the fields needed for logging are read.
"""

from typing import Any, Optional

from pydantic import BaseModel


class BulkResponseSummary(BaseModel):
    """What the write path needs to know about a bulk response."""

    errors: bool = False
    took: Optional[int] = None
    items: int = 0

    @classmethod
    def from_response(cls, response: Any) -> "BulkResponseSummary":
        body = getattr(response, "body", response)
        if not isinstance(body, dict):
            return cls()
        return cls(
            errors=bool(body.get("errors", False)),
            took=body.get("took"),
            items=len(body.get("items") or ()),
        )
