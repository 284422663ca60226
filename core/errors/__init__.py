"""
LuxRent Core — Booking Errors
===============================
Typed failures surfaced by the booking core.

Every error carries:
- code       stable machine-readable identifier
- retryable  whether a caller may retry after backoff
- details    structured data (field names, conflicting ranges)

Callers render messages from to_dict(); raw internal exception
text never leaves the core.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence


class BookingError(Exception):
    """Base error for all booking core failures."""

    code = "BOOKING_ERROR"

    def __init__(
        self,
        message: str,
        *,
        retryable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.retryable = retryable
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }


# ══════════════════════════════════════════════════════════════
# INPUT ERRORS: caller must correct input, never retried
# ══════════════════════════════════════════════════════════════

class ValidationError(BookingError):
    """Malformed request (bad date range, unknown tier, missing fields)."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, fields: Iterable[str] = ()):
        self.fields = tuple(fields)
        super().__init__(
            message,
            retryable=False,
            details={"fields": list(self.fields)},
        )

    @classmethod
    def from_problems(cls, problems: Dict[str, str]) -> ValidationError:
        """Fold a {field: message} mapping into one error."""
        message = "; ".join(f"{k}: {v}" for k, v in problems.items())
        err = cls(message, fields=problems.keys())
        err.details["problems"] = dict(problems)
        return err


class InvalidRangeError(ValidationError):
    """Empty, inverted or too-short date range."""

    code = "INVALID_RANGE"

    def __init__(self, message: str, fields: Iterable[str] = ("range",)):
        super().__init__(message, fields=fields)


class NotFoundError(BookingError):
    """Unknown item, booking or calendar entry."""

    code = "NOT_FOUND"

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(
            f"{kind} '{identifier}' not found.",
            retryable=False,
            details={"kind": kind, "identifier": identifier},
        )


# ══════════════════════════════════════════════════════════════
# DOMAIN STATE ERRORS
# ══════════════════════════════════════════════════════════════

class ConflictError(BookingError):
    """
    Requested range is unavailable.

    `conflicts` holds the overlapping ranges in start order so the
    caller can suggest alternatives. Retrying the same range will fail
    again; a different range may succeed.
    """

    code = "CONFLICT"

    def __init__(self, item_id: str, conflicts: Sequence = ()):
        self.item_id = item_id
        self.conflicts = tuple(conflicts)
        super().__init__(
            f"item '{item_id}' is unavailable: "
            f"{len(self.conflicts)} overlapping range(s).",
            retryable=False,
            details={
                "item_id": item_id,
                "conflicts": [c.to_dict() for c in self.conflicts],
            },
        )


class ItemBusyError(BookingError):
    """Per-item lock not acquired in time; safe to retry."""

    code = "ITEM_BUSY"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(
            f"item '{item_id}' is busy, retry shortly.",
            retryable=True,
            details={"item_id": item_id},
        )


class InvalidTransitionError(BookingError):
    """Booking status change not allowed from the current status."""

    code = "INVALID_TRANSITION"

    def __init__(self, booking_id: str, from_status: str, to_status: str):
        self.booking_id = booking_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"booking '{booking_id}' cannot move from "
            f"{from_status} to {to_status}.",
            retryable=False,
            details={
                "booking_id": booking_id,
                "from_status": from_status,
                "to_status": to_status,
            },
        )


# ══════════════════════════════════════════════════════════════
# PRICING COLLABORATOR ERRORS: retryable after backoff
# ══════════════════════════════════════════════════════════════

class UnknownAddOnError(BookingError):
    """Add-on id not present in the catalog."""

    code = "UNKNOWN_ADDON"

    def __init__(self, addon_id: str):
        self.addon_id = addon_id
        super().__init__(
            f"add-on '{addon_id}' is not in the catalog.",
            retryable=True,
            details={"addon_id": addon_id},
        )


class PricingUnavailableError(BookingError):
    """A pricing collaborator timed out or failed."""

    code = "PRICING_UNAVAILABLE"

    def __init__(self, reason: str, collaborator: str = ""):
        self.reason = reason
        self.collaborator = collaborator
        super().__init__(
            "pricing is temporarily unavailable.",
            retryable=True,
            details={"reason": reason, "collaborator": collaborator},
        )


__all__ = [
    "BookingError",
    "ValidationError",
    "InvalidRangeError",
    "NotFoundError",
    "ConflictError",
    "ItemBusyError",
    "InvalidTransitionError",
    "UnknownAddOnError",
    "PricingUnavailableError",
]
