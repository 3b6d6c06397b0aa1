"""Latest pushed trade/order snapshot per account."""

import logging
import threading
from typing import Dict, Optional

from shared.metrics import CoreMetrics
from shared.models import LiveTradeSnapshot

logger = logging.getLogger(__name__)


class LiveTradeStore:
    """
    Single-writer cache of live snapshots.

    Updates swap an immutable snapshot reference; nothing inside a stored
    snapshot is ever mutated. A reader therefore sees either the previous
    snapshot or the new one in full. The lock only serialises writers
    against each other (last write wins); reads never take it.

    Once an account has been selected, pushes for any other account are
    dropped so a late message from the previous account can never
    resurface after a switch.
    """

    def __init__(self, metrics: Optional[CoreMetrics] = None):
        self.metrics = metrics
        self._snapshots: Dict[int, LiveTradeSnapshot] = {}
        self._active_account: Optional[int] = None
        self._version = 0
        self._write_lock = threading.Lock()

    @property
    def active_account(self) -> Optional[int]:
        return self._active_account

    @property
    def version(self) -> int:
        """Incremented on every replacement, clear and account switch."""
        return self._version

    def select_account(self, account_id: Optional[int]) -> None:
        """Make ``account_id`` the active account, clearing stale snapshots."""
        with self._write_lock:
            if account_id == self._active_account:
                return
            previous = self._active_account
            # Rebind instead of clearing in place; readers may hold the old dict
            self._snapshots = {}
            self._active_account = account_id
            self._version += 1
        logger.info(f"Active account switched {previous} -> {account_id}; live snapshots cleared")

    def update_positions(self, account_id: int, snapshot: Optional[LiveTradeSnapshot]) -> bool:
        """Replace the stored snapshot for ``account_id`` wholesale.

        Args:
            account_id: Account the snapshot belongs to
            snapshot: New snapshot, or None to clear

        Returns:
            True if the store changed, False if the push was ignored
        """
        with self._write_lock:
            if self._active_account is not None and account_id != self._active_account:
                logger.debug(
                    f"Ignoring snapshot for account {account_id}; active account is {self._active_account}"
                )
                return False

            snapshots = dict(self._snapshots)
            if snapshot is None:
                snapshots.pop(account_id, None)
            else:
                snapshots[account_id] = snapshot
            self._snapshots = snapshots
            self._version += 1

        if self.metrics is not None:
            self.metrics.snapshot_replacements.inc()
        return True

    def snapshot_for(self, account_id: int) -> Optional[LiveTradeSnapshot]:
        return self._snapshots.get(account_id)

    def current(self) -> Optional[LiveTradeSnapshot]:
        """Snapshot of the active account (None if nothing selected or pushed)."""
        if self._active_account is None:
            return None
        return self._snapshots.get(self._active_account)
