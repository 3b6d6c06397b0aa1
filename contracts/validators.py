"""
Message contract validators for inbound payloads.

This module defines Pydantic models for the messages entering the core:
- OpenTradesMessage: Per-account open trades/orders push (trading service → Position Plane)

Trade and order records reuse the shared models; the envelope only adds
the wire-level fields and the conversion into a LiveTradeSnapshot.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Optional

from shared.models import LiveTradeSnapshot, Order, Trade
from shared.models.base import coerce_sequence


# ============================================================================
# Position Plane Messages
# ============================================================================

EXAMPLE_OPEN_TRADES = {
    "account": 42,
    "status": "success",
    "open_trades": [
        {
            "order_id": "1001",
            "symbol": "EURUSD",
            "position_type": "long",
            "quantity": 2.0,
            "entry": 1.085,
            "pl": 12.5,
        }
    ],
    "open_orders": [
        {
            "order_id": "2001",
            "symbol": "EURUSD",
            "position_type": "short",
            "order_type": "Stop",
            "quantity": 1.0,
            "price": 1.2345,
        }
    ],
}


class OpenTradesMessage(BaseModel):
    """
    Open trades push for one account.

    ``other_open_trades`` / ``other_open_orders`` (positions of linked
    accounts) are accepted on the wire but not carried into the snapshot.
    """
    model_config = ConfigDict(extra='ignore', json_schema_extra={'example': EXAMPLE_OPEN_TRADES})

    account: Optional[int] = Field(None, description="Account the push belongs to")
    open_trades: List[Trade] = Field(default_factory=list, description="Open positions")
    open_orders: List[Order] = Field(default_factory=list, description="Open pending orders")
    status: Optional[str] = Field(None, description="Service status flag")

    @field_validator('open_trades', 'open_orders', mode='before')
    @classmethod
    def tolerate_missing_arrays(cls, v: Any) -> List[Any]:
        return coerce_sequence(v)

    def to_snapshot(self, account: Optional[int] = None) -> LiveTradeSnapshot:
        """Snapshot of this message, for ``account`` if the message has none."""
        return LiveTradeSnapshot(
            account=self.account if self.account is not None else account,
            trades=tuple(self.open_trades),
            orders=tuple(self.open_orders),
        )

