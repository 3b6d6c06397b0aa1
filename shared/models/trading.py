"""
Live trading state models.

Defines:
- PositionType: long / short
- OrderKind: Market / Limit / Stop / StopLimit
- Trade: Open position record
- Order: Open pending-order record
- LiveTradeSnapshot: Complete open trades/orders of one account

Snapshots are replaced wholesale on every push, never merged, so all
models here are immutable and a snapshot can be shared between the
writer and any number of readers without copying.
"""

from enum import Enum
from typing import Annotated, Any, Optional, Tuple
from pydantic import Field, field_validator

from shared.models.base import BaseModel, SymbolMixin, coerce_sequence


def _normalize_token(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch.isalnum())


class PositionType(str, Enum):
    """Position direction."""
    LONG = "long"
    SHORT = "short"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            token = _normalize_token(value)
            for member in cls:
                if member.value == token:
                    return member
        return None

    @property
    def sign(self) -> int:
        """+1 for long, -1 for short."""
        return 1 if self is PositionType.LONG else -1


class OrderKind(str, Enum):
    """Pending order kinds reported by the trading service."""
    MARKET = "Market"
    LIMIT = "Limit"
    STOP = "Stop"
    STOP_LIMIT = "StopLimit"

    @classmethod
    def _missing_(cls, value):
        # Upstream mixes 'Limit', 'limit' and 'stop_limit'
        if isinstance(value, str):
            token = _normalize_token(value)
            for member in cls:
                if _normalize_token(member.value) == token:
                    return member
        return None


class _OrderFields(BaseModel, SymbolMixin):
    """Fields shared by open trades and open orders."""

    order_id: Annotated[
        str,
        Field(
            min_length=1,
            description="Broker order id"
        )
    ]

    position_type: Annotated[
        PositionType,
        Field(
            description="Direction of the position/order (long or short)"
        )
    ]

    quantity: Annotated[
        float,
        Field(
            ge=0.0,
            description="Unsigned quantity in lots/units"
        )
    ]

    sl: Optional[float] = None
    tp: Optional[float] = None

    @field_validator('order_id', mode='before')
    @classmethod
    def stringify_order_id(cls, v: Any) -> Any:
        """Accept integer order ids from brokers that send them unquoted."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class Trade(_OrderFields):
    """
    Open position.

    Example:
        Trade(order_id='1001', symbol='EURUSD', position_type='long',
              quantity=2.0, entry=1.0850, pl=12.5)
    """

    entry: Annotated[
        float,
        Field(
            description="Entry price"
        )
    ]

    pl: Annotated[
        float,
        Field(
            default=0.0,
            description="Recorded profit/loss"
        )
    ]

    fees: Optional[float] = None
    roi: Optional[float] = None
    trade_id: Optional[int] = None
    account_id: Optional[int] = None
    open_time: Optional[str] = None


class Order(_OrderFields):
    """
    Open pending order.

    Example:
        Order(order_id='2001', symbol='EURUSD', position_type='short',
              order_type='Stop', quantity=1.0, price=1.2345)
    """

    order_type: Annotated[
        OrderKind,
        Field(
            description="Order kind (Market, Limit, Stop, StopLimit)"
        )
    ]

    price: Annotated[
        float,
        Field(
            description="Order price (trigger price for stops)"
        )
    ]

    placed_time: Optional[str] = None


class LiveTradeSnapshot(BaseModel):
    """
    Complete current open trades/orders for exactly one account.

    There is no history and no partial update: a new push produces a new
    snapshot which replaces the previous one.
    """

    account: Annotated[
        Optional[int],
        Field(
            default=None,
            description="Account id the snapshot belongs to (None if unknown)"
        )
    ]

    trades: Tuple[Trade, ...] = ()
    orders: Tuple[Order, ...] = ()

    @field_validator('trades', 'orders', mode='before')
    @classmethod
    def tolerate_missing_arrays(cls, v: Any) -> Any:
        return coerce_sequence(v)

    @classmethod
    def empty(cls, account: Optional[int] = None) -> "LiveTradeSnapshot":
        """Snapshot with no trades and no orders."""
        return cls(account=account)

    @property
    def is_empty(self) -> bool:
        return not self.trades and not self.orders

    def symbols(self) -> Tuple[str, ...]:
        """Distinct symbols across trades and orders, in first-seen order."""
        seen = {}
        for record in self.trades + self.orders:
            seen.setdefault(record.symbol, None)
        return tuple(seen)
