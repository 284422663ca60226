"""
LuxRent Rental Booking Engine — Request Validation
====================================================
Shape checks run before any shared state is touched.

parse_pricing_request() turns a raw mapping (as decoded by the
surrounding transport) into a PricingRequest. validate_request()
re-checks an already-built request. Both collect every problem and
raise one ValidationError naming the offending fields.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from core.errors import ValidationError
from core.time import DateRange
from engines.rental_booking.models import AddOnLine, PricingRequest, ServiceTier


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


def parse_pricing_request(payload: Mapping[str, Any]) -> PricingRequest:
    problems: Dict[str, str] = {}

    item_id = payload.get("item_id")
    if not item_id or not isinstance(item_id, str):
        problems["item_id"] = "must be a non-empty string"

    start = _parse_datetime(payload.get("start"))
    end = _parse_datetime(payload.get("end"))
    date_range = None
    if start is None:
        problems["start"] = "must be an ISO-8601 datetime"
    if end is None:
        problems["end"] = "must be an ISO-8601 datetime"
    if start is not None and end is not None:
        try:
            date_range = DateRange(start, end)
        except ValidationError as exc:
            problems["range"] = exc.message

    tier = ServiceTier.STANDARD
    try:
        tier = ServiceTier.parse(payload.get("tier", "standard"))
    except ValidationError as exc:
        problems["tier"] = exc.message

    add_ons = []
    for raw in payload.get("add_ons", ()) or ():
        try:
            if isinstance(raw, Mapping):
                add_ons.append(AddOnLine(raw.get("addon_id", ""), raw.get("quantity", 1)))
            else:
                add_ons.append(AddOnLine(str(raw), 1))
        except ValidationError as exc:
            problems["add_ons"] = exc.message

    pickup = payload.get("pickup_location", "")
    if not isinstance(pickup, str):
        problems["pickup_location"] = "must be a string"

    if problems:
        raise ValidationError.from_problems(problems)

    return PricingRequest(
        item_id=item_id,
        range=date_range,
        tier=tier,
        add_ons=tuple(add_ons),
        pickup_location=pickup,
        dropoff_location=payload.get("dropoff_location", "") or pickup,
    )


def validate_request(request: Any, known_tiers=None) -> None:
    """Raise ValidationError if a PricingRequest is malformed."""
    if not isinstance(request, PricingRequest):
        raise ValidationError("request must be a PricingRequest.", fields=("request",))

    problems: Dict[str, str] = {}
    if not request.item_id or not isinstance(request.item_id, str):
        problems["item_id"] = "must be a non-empty string"
    if not isinstance(request.range, DateRange):
        problems["range"] = "must be a DateRange"
    elif request.range.end <= request.range.start:
        problems["range"] = "start must be before end"
    if known_tiers is not None and request.tier not in known_tiers:
        problems["tier"] = f"tier '{request.tier.value}' is not priced"
    for line in request.add_ons:
        if not isinstance(line, AddOnLine):
            problems["add_ons"] = "entries must be AddOnLine"
            break

    if problems:
        raise ValidationError.from_problems(problems)


def validate_customer_id(customer_id: Any) -> None:
    if not customer_id or not isinstance(customer_id, str):
        raise ValidationError("customer_id must be a non-empty string.", fields=("customer_id",))


__all__ = [
    "parse_pricing_request",
    "validate_request",
    "validate_customer_id",
]
