"""Broker adapter facade (the contract the charting host consumes)."""

from typing import Any, Dict, List, Optional, Sequence

from position_plane.adapters.host import ChartHost, current_symbol
from position_plane.store import LiveTradeStore
from position_plane.views import SymbolScopedOrderView, SymbolScopedPositionView
from shared.metrics import CoreMetrics
from shared.models import Account, AccountManagerInfo, BaseModel, LiveTradeSnapshot


def to_host_records(records: Sequence[BaseModel]) -> List[Dict[str, Any]]:
    """Serialise records with the host's field names, omitting unset fields."""
    return [record.model_dump(mode="json", by_alias=True, exclude_none=True) for record in records]


class BrokerAdapterFacade:
    """
    Live-position broker adapter for one account.

    Every host-facing operation is a coroutine that never raises: a missing
    current symbol or a missing snapshot resolves to an empty list. The
    current symbol is pulled from the host on each call; trades are pushed
    in through ``update_positions``.

    Constructing a facade selects its account in the store, which clears
    whatever snapshot the previously selected account left behind.
    """

    def __init__(
        self,
        host: Optional[ChartHost],
        account: Account,
        store: Optional[LiveTradeStore] = None,
        metrics: Optional[CoreMetrics] = None,
    ):
        self.host = host
        self.account = account
        self.metrics = metrics
        self.store = store or LiveTradeStore(metrics=metrics)
        self.store.select_account(account.id)

        self.position_view = SymbolScopedPositionView(self._snapshot)
        self.order_view = SymbolScopedOrderView(self._snapshot)

    def _snapshot(self) -> Optional[LiveTradeSnapshot]:
        return self.store.snapshot_for(self.account.id)

    def update_positions(self, snapshot: Optional[LiveTradeSnapshot]) -> bool:
        """Replace this account's snapshot (None clears it)."""
        return self.store.update_positions(self.account.id, snapshot)

    async def positions(self) -> List[Dict[str, Any]]:
        self._count("positions")
        symbol = current_symbol(self.host)
        if symbol is None:
            return []
        return to_host_records(self.position_view.positions_for(symbol))

    async def orders(self) -> List[Dict[str, Any]]:
        self._count("orders")
        symbol = current_symbol(self.host)
        if symbol is None:
            return []
        return to_host_records(self.order_view.orders_for(symbol))

    async def is_tradable(self) -> bool:
        # No trading-hours model: the host may always trade
        self._count("is_tradable")
        return True

    async def account_manager_info(self) -> Dict[str, Any]:
        self._count("account_manager_info")
        info = AccountManagerInfo(account_title=self.account.name)
        return info.model_dump(by_alias=True)

    async def chart_context_menu_actions(self) -> List[Dict[str, Any]]:
        self._count("chart_context_menu_actions")
        return []

    def _count(self, operation: str) -> None:
        if self.metrics is not None:
            self.metrics.host_queries.labels(operation=operation).inc()
