# account_plane/app/hierarchy_service.py: one hierarchy refresh cycle against the accounts collaborator
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Set, Tuple

from pydantic import ValidationError

from account_plane.hierarchy import AccountHierarchyBuilder, CopyRelationshipIndex
from shared.config import CoreConfig
from shared.logging import PerformanceLogger, StructuredLogger, TraceContext, redact_pii
from shared.metrics import CoreMetrics
from shared.models import Account, HierarchyNode
from shared.models.base import coerce_sequence

logger = logging.getLogger(__name__)

# Account groups returned by the accounts service, in display order
ACCOUNT_GROUPS = ("broker_accounts", "prop_firm_accounts", "bt_accounts", "competition_accounts")


class AccountsSource(Protocol):
    """Accounts collaborator (REST client, cache, fixture...)."""

    async def fetch_accounts(self) -> Any:
        """Account list, or the grouped accounts payload."""
        ...

    async def fetch_copier_accounts(self) -> Any:
        """Relationship payload ``{"copier_accounts": [...]}`` (or None)."""
        ...


@dataclass
class HierarchyResult:
    """Outcome of one refresh cycle."""
    nodes: List[HierarchyNode] = field(default_factory=list)
    excluded_ids: Set[int] = field(default_factory=set)
    account_count: int = 0
    trace_id: Optional[str] = None

    @property
    def master_count(self) -> int:
        return sum(1 for node in self.nodes if node.slaves)


def parse_accounts(raw: Any) -> Tuple[Account, ...]:
    """
    Parse the collaborator's account data into Account models.

    Accepts a flat list of account mappings, or the grouped payload
    (``broker_accounts``, ``prop_firm_accounts``, ...), which is flattened in
    ACCOUNT_GROUPS order. A payload or group that is not an array counts
    as empty, and entries that fail validation are skipped.
    """
    if raw is None:
        return ()
    if isinstance(raw, Mapping):
        entries: Iterable[Any] = [
            entry
            for group in ACCOUNT_GROUPS
            for entry in coerce_sequence(raw.get(group))
        ]
    else:
        entries = coerce_sequence(raw)

    accounts = []
    for entry in entries:
        if isinstance(entry, Account):
            accounts.append(entry)
            continue
        try:
            accounts.append(Account.model_validate(entry))
        except ValidationError as e:
            safe = redact_pii(entry) if isinstance(entry, dict) else repr(entry)
            logger.warning(f"Skipping malformed account entry {safe}: {e.error_count()} validation error(s)")
    return tuple(accounts)


class HierarchyService:
    """
    Rebuilds the account hierarchy from scratch on every refresh.

    Nothing is cached between cycles: index, classifier and nodes are
    derived fresh from whatever the collaborator returns. A failing
    collaborator yields an empty result rather than an exception.
    """

    def __init__(
        self,
        source: AccountsSource,
        config: CoreConfig,
        log: StructuredLogger,
        metrics: Optional[CoreMetrics] = None,
    ):
        self.source = source
        self.config = config
        self.log = log
        self.metrics = metrics
        self.builder = AccountHierarchyBuilder(metrics=metrics)

    async def refresh(self) -> HierarchyResult:
        """Fetch accounts and relationships, then build the hierarchy."""
        with TraceContext() as trace:
            try:
                raw_accounts = await self.source.fetch_accounts()
                raw_relationships = await self.source.fetch_copier_accounts()
            except Exception as e:
                self.log.error(
                    "accounts_fetch_failed",
                    error_type=type(e).__name__,
                    error_message=str(e),
                    exc_info=True,
                )
                return HierarchyResult(trace_id=trace.trace_id)

            accounts = parse_accounts(raw_accounts)
            index = CopyRelationshipIndex.from_payload(
                raw_relationships,
                enabled_only=self.config.hierarchy.enabled_links_only,
            )

            with PerformanceLogger(self.log, "hierarchy_build", accounts=len(accounts), masters=len(index)):
                nodes, excluded = self.builder.build_with_exclusions(accounts, index)

            return HierarchyResult(
                nodes=nodes,
                excluded_ids=excluded,
                account_count=len(accounts),
                trace_id=trace.trace_id,
            )
