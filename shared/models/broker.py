"""
Host-facing broker records.

Defines the records the charting/broker host consumes:
- BrokerPosition: Open position with signed quantity
- BrokerOrder: Pending order with integer type/status codes
- AccountManagerInfo: Account panel descriptor

Field names follow Python conventions; the host's camelCase names are
aliases, so ``model_dump(by_alias=True, exclude_none=True)`` produces the
exact host record (unset limit/stop prices are omitted, not null).
"""

from enum import IntEnum
from typing import Annotated, Optional
from pydantic import Field

from shared.models.base import BaseModel, SymbolMixin


class Side(IntEnum):
    """Host side codes."""
    BUY = 1
    SELL = -1


class HostOrderType(IntEnum):
    """Host order type codes."""
    LIMIT = 1
    MARKET = 2
    STOP = 3


class HostOrderStatus(IntEnum):
    """Host order status codes (only PENDING is ever reported)."""
    PENDING = 2


POSITION_TYPE_CODE = 2


class BrokerPosition(BaseModel, SymbolMixin):
    """
    Position record for the host.

    ``qty`` is signed: positive for long, negative for short.
    ``last`` is the entry price; no live mark is fed into the adapter.
    """

    id: str
    qty: float
    side: Side

    avg_price: Annotated[
        float,
        Field(
            alias="avgPrice",
            description="Average entry price"
        )
    ]

    profit: Annotated[
        float,
        Field(
            description="Recorded profit/loss"
        )
    ]

    last: Annotated[
        float,
        Field(
            description="Last price (entry price; not a streamed mark)"
        )
    ]

    price: float
    type: int = POSITION_TYPE_CODE


class BrokerOrder(BaseModel, SymbolMixin):
    """
    Pending order record for the host.

    Exactly one of ``limit_price`` / ``stop_price`` is set for LIMIT / STOP
    orders; neither is set for market or stop-limit orders.
    """

    id: str
    qty: float
    side: Side
    price: float
    status: int = HostOrderStatus.PENDING
    type: HostOrderType

    limit_price: Annotated[
        Optional[float],
        Field(
            default=None,
            alias="limitPrice",
            description="Limit price (LIMIT orders only)"
        )
    ]

    stop_price: Annotated[
        Optional[float],
        Field(
            default=None,
            alias="stopPrice",
            description="Stop price (STOP orders only)"
        )
    ]


class AccountManagerInfo(BaseModel):
    """Account manager panel descriptor."""

    account_title: Annotated[
        str,
        Field(
            alias="accountTitle",
            description="Account display name"
        )
    ]
