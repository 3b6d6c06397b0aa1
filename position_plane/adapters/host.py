"""Charting host seam: how the adapter asks the host for its current symbol."""

import logging
from collections.abc import Mapping
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


class ChartHost(Protocol):
    """
    Charting/trading host.

    ``symbol_ext()`` describes the chart's current instrument: an object
    with a ``symbol`` attribute, a mapping with a ``"symbol"`` key, or None
    while the chart has not resolved a symbol yet.
    """

    def symbol_ext(self) -> Any:
        ...


def current_symbol(host: Optional[ChartHost]) -> Optional[str]:
    """Pull the host's current symbol at call time.

    Returns None when there is no host, the host has no symbol yet, or the
    host call fails; the failure is logged, never raised.
    """
    if host is None:
        return None
    try:
        ext = host.symbol_ext()
    except Exception as e:
        logger.warning(f"Host could not supply a current symbol: {type(e).__name__}: {e}")
        return None

    if ext is None:
        return None
    if isinstance(ext, Mapping):
        symbol = ext.get("symbol")
    else:
        symbol = getattr(ext, "symbol", None)

    if isinstance(symbol, str) and symbol:
        return symbol
    return None
