"""KeyCRM response types."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CRMResponse:
    """Successful response from a KeyCRM call.

    The body is kept raw; KeyCRM's order document is not needed downstream.
    """

    success: bool
    status_code: int | None = None
    body: str = ""

    @classmethod
    def ok(cls, status_code: int, body: str = "") -> CRMResponse:
        return cls(success=True, status_code=status_code, body=body)
