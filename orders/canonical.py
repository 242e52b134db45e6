"""Canonical signing strings for request payloads.

The overall request signature covers the payload with
``blockchain_signatures`` removed: those are computed first and attached
to the payload, but they cannot be part of the input they are signed
alongside.  The request ``signature`` itself lives outside the payload
and is never included.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError

from core.errors import SerializationFailure

PLACE_LIMIT_ORDER = "place_limit_order"
PLACE_MARKET_ORDER = "place_market_order"

BLOCKCHAIN_SIGNATURES = "blockchain_signatures"


def general_canonical_string(
    operation: str,
    variables: dict[str, Any],
    exclude: Iterable[str] = (),
) -> str:
    """``"<operation>,<payload as sorted compact JSON>"`` minus *exclude* keys."""
    payload = variables.get("payload")
    if not isinstance(payload, dict):
        raise SerializationFailure(f"{operation}: variables have no payload object")

    excluded = {BLOCKCHAIN_SIGNATURES, *exclude}
    projected = {key: value for key, value in payload.items() if key not in excluded}
    try:
        body = json.dumps(projected, sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise SerializationFailure(f"{operation}: payload is not JSON serializable") from exc
    return f"{operation},{body}"


def canonical_string(
    operation: str,
    variables: BaseModel,
    exclude: Iterable[str] = (),
) -> str:
    """Round-trip *variables* through JSON, then build the canonical string.

    Field names are the snake_case Python names, not the wire aliases.

    Raises
    ------
    SerializationFailure
        If the variables do not survive the JSON round trip.
    """
    try:
        intermediate = json.loads(variables.model_dump_json(exclude_none=True))
    except (PydanticSerializationError, ValueError) as exc:
        raise SerializationFailure(f"Failed to serialize {operation} into canonical form") from exc
    return general_canonical_string(operation, intermediate, exclude)
