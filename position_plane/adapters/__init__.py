"""Host-facing broker adapters for the position plane."""

from position_plane.adapters.broker_facade import BrokerAdapterFacade, to_host_records
from position_plane.adapters.host import ChartHost, current_symbol

__all__ = ["BrokerAdapterFacade", "ChartHost", "current_symbol", "to_host_records"]
