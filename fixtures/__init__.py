"""
Fixture Management Module

Deterministic payload fixtures shaped like the upstream services' responses:
- accounts.yaml: grouped accounts payload + copier relationship payload
- open_trades.yaml: open trades/orders push messages
"""

from pathlib import Path
from typing import Any, Dict

import yaml

from shared.models import Account, Order, Trade

# Fixture base directory
FIXTURES_DIR = Path(__file__).parent


def load_fixture(name: str) -> Dict[str, Any]:
    """Load a YAML fixture by file stem (e.g. 'accounts')."""
    with open(FIXTURES_DIR / f"{name}.yaml", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ============================================================================
# Model builders
# ============================================================================


def make_accounts(*ids):
    """Accounts with the given ids, named after their id."""
    return [Account(id=i, name=f"Account {i}") for i in ids]


def relationship_payload(mapping):
    """Raw relationship payload from ``{master_id: [copier ids]}``."""
    return {
        "copier_accounts": [
            {
                "master_account": master,
                "copier_accounts": [{"copy_account": c, "enabled": True} for c in copiers],
            }
            for master, copiers in mapping.items()
        ]
    }


def make_trade(order_id="1", symbol="EURUSD", position_type="long", quantity=1.0, entry=1.1, pl=0.0):
    return Trade(
        order_id=order_id,
        symbol=symbol,
        position_type=position_type,
        quantity=quantity,
        entry=entry,
        pl=pl,
    )


def make_order(order_id="1", symbol="EURUSD", position_type="long", order_type="Limit", quantity=1.0, price=1.1):
    return Order(
        order_id=order_id,
        symbol=symbol,
        position_type=position_type,
        order_type=order_type,
        quantity=quantity,
        price=price,
    )
