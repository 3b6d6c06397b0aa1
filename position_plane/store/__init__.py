"""Live snapshot storage."""

from position_plane.store.live_trade_store import LiveTradeStore

__all__ = ["LiveTradeStore"]
