"""
Shared data models for the account relationship & live position core.

These models serve as the single source of truth for data contracts across:
- Account Plane: Copy-relationship resolution and account hierarchy
- Position Plane: Live trade/order snapshots and the host broker adapter
"""

from shared.models.base import BaseModel, AccountIdMixin, SymbolMixin
from shared.models.account import (
    Account,
    AccountRole,
    CopierAccountsPayload,
    CopierLink,
    CopyRelationship,
    HierarchyNode,
)
from shared.models.trading import LiveTradeSnapshot, Order, OrderKind, PositionType, Trade
from shared.models.broker import (
    AccountManagerInfo,
    BrokerOrder,
    BrokerPosition,
    HostOrderStatus,
    HostOrderType,
    Side,
)

__all__ = [
    # Base
    "BaseModel",
    "AccountIdMixin",
    "SymbolMixin",
    # Accounts
    "Account",
    "AccountRole",
    "CopierAccountsPayload",
    "CopierLink",
    "CopyRelationship",
    "HierarchyNode",
    # Trading
    "LiveTradeSnapshot",
    "Order",
    "OrderKind",
    "PositionType",
    "Trade",
    # Broker
    "AccountManagerInfo",
    "BrokerOrder",
    "BrokerPosition",
    "HostOrderStatus",
    "HostOrderType",
    "Side",
]
