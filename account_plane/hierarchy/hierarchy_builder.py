"""
Partition an account list into master/copier/standalone hierarchy nodes.

Every input account lands in exactly one node, either as a node's master
or inside exactly one node's slave list. The one exception: a copier whose
master is not part of the input account list appears in no node at all.
That drop is reported (log + metric) but deliberately not repaired.
"""

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from account_plane.hierarchy.relationship_index import CopyRelationshipIndex
from account_plane.hierarchy.role_classifier import AccountRoleClassifier
from shared.metrics import CoreMetrics
from shared.models import Account, AccountRole, HierarchyNode

logger = logging.getLogger(__name__)


class AccountHierarchyBuilder:
    """
    Builds the account hierarchy in two passes over the input order.

    Pass 1 emits one node per MASTER account (not already claimed as a
    slave), with slave ids resolved through the index and ids missing from
    the input dropped. Pass 2 emits a slave-less node per STANDALONE
    account. Runs in O(accounts + relationship links).
    """

    def __init__(self, metrics: Optional[CoreMetrics] = None):
        self.metrics = metrics

    def build(self, accounts: Sequence[Account], index: CopyRelationshipIndex) -> List[HierarchyNode]:
        """Partition ``accounts`` into hierarchy nodes.

        Args:
            accounts: Full ordered account list
            index: Copy-relationship index for the same refresh cycle

        Returns:
            Hierarchy nodes: masters first (input order), then standalones
        """
        nodes, _ = self.build_with_exclusions(accounts, index)
        return nodes

    def build_with_exclusions(
        self, accounts: Sequence[Account], index: CopyRelationshipIndex
    ) -> Tuple[List[HierarchyNode], Set[int]]:
        """Like ``build``, also returning the ids of accounts left out of every node."""
        if self.metrics is not None:
            with self.metrics.time_hierarchy_build():
                nodes = self._build(accounts, index)
            self.metrics.hierarchy_nodes.set(len(nodes))
        else:
            nodes = self._build(accounts, index)

        excluded = excluded_account_ids(accounts, nodes)
        if excluded:
            logger.warning(
                f"{len(excluded)} copier account(s) have no master in the account list "
                f"and were left out of the hierarchy: {sorted(excluded)}"
            )
            if self.metrics is not None:
                self.metrics.excluded_accounts.inc(len(excluded))

        return nodes, excluded

    def _build(self, accounts: Sequence[Account], index: CopyRelationshipIndex) -> List[HierarchyNode]:
        classifier = AccountRoleClassifier(index)
        accounts_by_id: Dict[int, Account] = {account.id: account for account in accounts}
        processed_slaves: Set[int] = set()
        nodes: List[HierarchyNode] = []

        for account in accounts:
            if account.id in processed_slaves or classifier.classify(account.id) is not AccountRole.MASTER:
                continue
            slaves = tuple(
                accounts_by_id[slave_id]
                for slave_id in index.slaves_of(account.id)
                if slave_id in accounts_by_id
            )
            processed_slaves.update(slave.id for slave in slaves)
            nodes.append(HierarchyNode(master=account, slaves=slaves))

        for account in accounts:
            if account.id in processed_slaves:
                continue
            if classifier.classify(account.id) is AccountRole.STANDALONE:
                nodes.append(HierarchyNode(master=account))

        return nodes


def excluded_account_ids(accounts: Sequence[Account], nodes: Sequence[HierarchyNode]) -> Set[int]:
    """Ids of input accounts referenced by no node."""
    referenced = {account_id for node in nodes for account_id in node.account_ids}
    return {account.id for account in accounts} - referenced
