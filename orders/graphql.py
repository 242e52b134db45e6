"""GraphQL request bodies, including the batched limit-order mutation.

A batch of N limit orders becomes one ``PlaceLimitOrder`` mutation with
N aliased ``placeLimitOrder`` calls.  Each sub-order contributes one
``BatchPart`` (variable declarations, aliased call, variable bindings);
parts are joined in input order so alias ``responseN`` always refers to
input order ``N``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from models.payload import PlaceLimitOrderVariables, PlaceMarketOrderVariables

LIMIT_ORDER_OPERATION = "PlaceLimitOrder"
MARKET_ORDER_OPERATION = "PlaceMarketOrder"

_ORDER_SELECTION = """{
    id
    status
    ordersTillSignState
    buyOrSell
    market {
      name
    }
    placedAt
    type
  }"""

MARKET_ORDER_QUERY = (
    "mutation PlaceMarketOrder($payload: PlaceMarketOrderParams!, "
    "$signature: Signature!, $affiliate: AffiliateDeveloperCode) {\n"
    "  placeMarketOrder(payload: $payload, signature: $signature, "
    f"affiliateDeveloperCode: $affiliate) {_ORDER_SELECTION}\n"
    "}\n"
)


class QueryBody(BaseModel):
    """What the transport posts: ``{"operationName", "query", "variables"}``."""

    model_config = ConfigDict(populate_by_name=True)

    operation_name: str = Field(serialization_alias="operationName")
    query: str
    variables: dict[str, Any]

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


@dataclass(frozen=True, slots=True)
class BatchPart:
    """One sub-order's share of the batched mutation."""

    declarations: str
    call: str
    bindings: dict[str, Any]


def limit_order_part(index: int, variables: PlaceLimitOrderVariables) -> BatchPart:
    payload = f"payload{index}"
    signature = f"signature{index}"
    affiliate = f"affiliate{index}"
    wire = variables.to_wire()
    return BatchPart(
        declarations=(
            f"${payload}: PlaceLimitOrderParams!, "
            f"${signature}: Signature!, "
            f"${affiliate}: AffiliateDeveloperCode"
        ),
        call=(
            f"  response{index}: placeLimitOrder(payload: ${payload}, "
            f"signature: ${signature}, affiliateDeveloperCode: ${affiliate}) "
            f"{_ORDER_SELECTION}"
        ),
        bindings={
            payload: wire["payload"],
            signature: wire["signature"],
            affiliate: wire.get("affiliate"),
        },
    )


def limit_orders_mutation(signed: Sequence[PlaceLimitOrderVariables]) -> QueryBody:
    """Assemble fully signed sub-orders into one multi-operation mutation."""
    if not signed:
        raise ValueError("A limit order batch needs at least one order")

    parts = [limit_order_part(index, variables) for index, variables in enumerate(signed)]
    declarations = ", ".join(part.declarations for part in parts)
    calls = "\n".join(part.call for part in parts)
    bindings: dict[str, Any] = {}
    for part in parts:
        bindings.update(part.bindings)

    return QueryBody(
        operation_name=LIMIT_ORDER_OPERATION,
        query=f"mutation {LIMIT_ORDER_OPERATION}({declarations}) {{\n{calls}\n}}\n",
        variables=bindings,
    )


def market_order_mutation(signed: PlaceMarketOrderVariables) -> QueryBody:
    wire = signed.to_wire()
    return QueryBody(
        operation_name=MARKET_ORDER_OPERATION,
        query=MARKET_ORDER_QUERY,
        variables={
            "payload": wire["payload"],
            "signature": wire["signature"],
            "affiliate": wire.get("affiliate"),
        },
    )
