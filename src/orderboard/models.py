"""
=============================================================================
ORDER DOMAIN MODEL
=============================================================================

Value types for the order board and their wire encoding.

=============================================================================
THE TWO SHAPES OF AN ORDER
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         ORDER LIFECYCLE                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Client JSON body          OrderRequest           Order            │
    │   {"kind": "buy", ...} ──► (no id yet)  ──────►  (server id) ──► DB │
    │                              from_json()    to_order(id)             │
    │                                                                      │
    │   GET /orders  ◄──  [Order.to_dict(), ...]  ◄──  store.list_all()   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

An OrderRequest is what the client is allowed to say. An Order is what
the server stores: the same fields plus an id the client never chooses.

=============================================================================
WIRE FORMAT
=============================================================================

    {
      "id": "9f2c...64 hex chars...",
      "kind": "buy",                  ← OrderType tag, lowercase
      "make_amount": 10.0,            ← what the maker offers
      "make_denomination": "usd",     ← Currency tag, lowercase
      "take_amount": 0.001,           ← what the maker wants back
      "take_denomination": "sat"
    }

Orders are encoded compactly (no spaces after separators), fields in the
order above.

=============================================================================
=============================================================================
AMOUNTS
=============================================================================

Amounts are single-precision values. Every amount, whether it comes from
a client or from a stored row, is rounded to the nearest float32 and
kept as the shortest decimal that rounds back to it:

    client sends        held as
    ------------        -------
    0.1                 0.1
    16777217            16777216.0
    0.10000000149...    0.1          (row written by older servers)

NaN, Infinity and anything beyond the float32 range are rejected.

=============================================================================
"""

import json
import random
import secrets
from enum import Enum
from typing import Annotated, Any, Dict, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class DecodeError(ValueError):
    """
    Raised when a payload or stored row can't be turned into a model.

    The message names the offending field so it can be shown to the
    client as-is:

        missing field `make_amount`
        unknown variant `gbp` for field `make_denomination`, expected ...
    """


class OrderType(str, Enum):
    """Side of the order."""
    BUY = "buy"
    SELL = "sell"


class Currency(str, Enum):
    """
    Denomination of an amount.

    SAT is the satoshi (1e-8 BTC); the rest are ISO 4217 fiat codes.
    """
    SAT = "sat"
    BRL = "brl"
    USD = "usd"
    EUR = "eur"
    CHF = "chf"


# Integers are accepted, booleans and strings are not.
Amount = Annotated[float, Field(strict=True, allow_inf_nan=False)]


def to_single(value: float) -> float:
    """
    Round to the nearest single-precision value.

    Raises:
        ValueError: If the value overflows float32.
    """
    with np.errstate(over="ignore"):
        single = np.float32(value)
    if not np.isfinite(single):
        raise ValueError("amount is out of single-precision range")
    return float(str(single))


def describe_errors(error: ValidationError) -> str:
    """Turn the first validation error into a one-line, field-named message."""
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"])

    if first["type"] == "missing":
        return f"missing field `{field}`"
    if first["type"] == "enum":
        expected = first.get("ctx", {}).get("expected", "a known tag")
        return (
            f"unknown variant `{first['input']}` for field `{field}`, "
            f"expected {expected}"
        )
    if not field:
        return first["msg"]
    return f"invalid value for field `{field}`: {first['msg']}"


# =============================================================================
# MODELS
# =============================================================================

class OrderRequest(BaseModel):
    """
    A client's submission, before the server assigns an id.

    Unknown keys are ignored. No range checks are applied to the amounts:
    zero and negative values pass through.
    """

    model_config = ConfigDict(frozen=True)

    kind: OrderType
    make_amount: Amount
    make_denomination: Currency
    take_amount: Amount
    take_denomination: Currency

    @field_validator("make_amount", "take_amount")
    @classmethod
    def single_precision(cls, value: float) -> float:
        return to_single(value)

    @classmethod
    def from_dict(cls, data: Any):
        """
        Validate a decoded JSON object (or a stored row).

        Raises:
            DecodeError: On a missing field, wrong type, unknown tag or
                         non-finite amount.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise DecodeError(describe_errors(e)) from None

    @classmethod
    def from_json(cls, text: str):
        """Parse a JSON document. Syntax errors surface as DecodeError too."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise DecodeError(str(e)) from None
        return cls.from_dict(data)

    def to_order(self, order_id: str) -> "Order":
        """Attach a server-generated id."""
        return Order(id=order_id, **self.model_dump())


class Order(OrderRequest):
    """A persisted order. Frozen: orders are created and deleted, never edited."""

    id: str

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict with the id first and enum members replaced by their tags."""
        return {"id": self.id, **self.model_dump(mode="json", exclude={"id"})}

    def to_json(self) -> str:
        return encode_compact(self.to_dict())


def encode_compact(data: Any) -> str:
    """
    Compact JSON, the encoding used for order bodies.

    Raises:
        ValueError: On NaN or infinite floats, which JSON can't express.
    """
    return json.dumps(data, separators=(",", ":"), allow_nan=False)


# =============================================================================
# ID AND SAMPLE GENERATION
# =============================================================================

def generate_order_id() -> str:
    """
    32 random bytes from the OS CSPRNG as 64 lowercase hex characters.

    Collisions are not checked here; the store's primary key is the only
    guard, and at 256 bits it never fires in practice.
    """
    return secrets.token_hex(32)


def random_order(rng: Optional[random.Random] = None) -> Order:
    """
    Build a random sample order (used to seed an empty board).

    Amounts are drawn uniformly from [1.0, 100.0) whatever the currency
    pair, so sample prices are not meaningful.
    """
    rng = rng or random.Random()
    return Order(
        id=generate_order_id(),
        kind=rng.choice(list(OrderType)),
        make_amount=rng.uniform(1.0, 100.0),
        make_denomination=rng.choice(list(Currency)),
        take_amount=rng.uniform(1.0, 100.0),
        take_denomination=rng.choice(list(Currency)),
    )
