"""
Symbol-scoped projections of a live snapshot into host broker records.

Both views are read-only: they take whatever snapshot the provider
returns at call time, filter by exact symbol equality and map each record.
The provider is re-invoked on every call, so a replaced snapshot is
picked up immediately and nothing from an older snapshot carries over.
"""

from typing import Callable, List, Optional

from shared.models import (
    BrokerOrder,
    BrokerPosition,
    HostOrderStatus,
    HostOrderType,
    LiveTradeSnapshot,
    Order,
    OrderKind,
    Side,
    Trade,
)
from shared.models.broker import POSITION_TYPE_CODE

SnapshotProvider = Callable[[], Optional[LiveTradeSnapshot]]

_ORDER_TYPE_CODES = {
    OrderKind.LIMIT: HostOrderType.LIMIT,
    OrderKind.STOP: HostOrderType.STOP,
}


def _signed(quantity: float, side: Side) -> float:
    return quantity if side is Side.BUY else -quantity


class SymbolScopedPositionView:
    """Open trades of one instrument as host positions."""

    def __init__(self, snapshot_provider: SnapshotProvider):
        self.snapshot_provider = snapshot_provider

    def positions_for(self, symbol: Optional[str]) -> List[BrokerPosition]:
        snapshot = self.snapshot_provider()
        if snapshot is None or not symbol:
            return []
        return [self._to_position(trade) for trade in snapshot.trades if trade.symbol == symbol]

    def _to_position(self, trade: Trade) -> BrokerPosition:
        side = Side(trade.position_type.sign)
        # No live mark is available here: entry price doubles as last
        return BrokerPosition(
            id=trade.order_id,
            symbol=trade.symbol,
            qty=_signed(trade.quantity, side),
            side=side,
            avg_price=trade.entry,
            profit=trade.pl,
            last=trade.entry,
            price=trade.entry,
            type=POSITION_TYPE_CODE,
        )


class SymbolScopedOrderView:
    """
    Open orders of one instrument as host orders.

    Every order is reported as pending: the snapshot carries no fill or
    cancel state, so anything present at fetch time is assumed open.
    """

    def __init__(self, snapshot_provider: SnapshotProvider):
        self.snapshot_provider = snapshot_provider

    def orders_for(self, symbol: Optional[str]) -> List[BrokerOrder]:
        snapshot = self.snapshot_provider()
        if snapshot is None or not symbol:
            return []
        return [self._to_order(order) for order in snapshot.orders if order.symbol == symbol]

    def _to_order(self, order: Order) -> BrokerOrder:
        side = Side(order.position_type.sign)
        return BrokerOrder(
            id=order.order_id,
            symbol=order.symbol,
            qty=_signed(order.quantity, side),
            side=side,
            price=order.price,
            status=HostOrderStatus.PENDING,
            type=_ORDER_TYPE_CODES.get(order.order_type, HostOrderType.MARKET),
            limit_price=order.price if order.order_type is OrderKind.LIMIT else None,
            stop_price=order.price if order.order_type is OrderKind.STOP else None,
        )
