"""Account role classification against a copy-relationship index."""

from account_plane.hierarchy.relationship_index import CopyRelationshipIndex
from shared.models import AccountRole


class AccountRoleClassifier:
    """
    Classify account ids as MASTER, COPIER or STANDALONE.

    Pure function of the (immutable) index: no state of its own, safe to
    share across threads.

    An id that is both a master and a copier classifies as MASTER. That
    precedence mirrors the order the checks have always run in; it is not
    a confirmed product rule.
    """

    def __init__(self, index: CopyRelationshipIndex):
        self.index = index

    def is_master(self, account_id: int) -> bool:
        """True iff the id has a relationship record, even with no links."""
        return self.index.has_master(account_id)

    def is_copier(self, account_id: int) -> bool:
        """True iff the id appears in any master's slave list."""
        return account_id in self.index.copier_ids()

    def classify(self, account_id: int) -> AccountRole:
        if self.is_master(account_id):
            return AccountRole.MASTER
        if self.is_copier(account_id):
            return AccountRole.COPIER
        return AccountRole.STANDALONE
