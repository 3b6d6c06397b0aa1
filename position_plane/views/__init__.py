"""Symbol-scoped host views over live snapshots."""

from position_plane.views.symbol_views import SymbolScopedOrderView, SymbolScopedPositionView

__all__ = ["SymbolScopedOrderView", "SymbolScopedPositionView"]
