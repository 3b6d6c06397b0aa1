"""Master id -> copier id lookup built from relationship records."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Dict, FrozenSet, List, Tuple, Union

from pydantic import ValidationError

from shared.models import CopierAccountsPayload, CopyRelationship

logger = logging.getLogger(__name__)

RelationshipSource = Union[CopierAccountsPayload, Mapping, Iterable, None]


class CopyRelationshipIndex:
    """
    One-level copy-relationship lookup.

    Maps each master id to the ordered list of copy-account ids drawn from
    its nested links. Duplicate master records are concatenated, not
    deduplicated. A master with a record but no links is still a key.

    Multi-level chains (a copier that is itself a master) are not modelled;
    such ids simply appear both as a key and inside another key's list.
    """

    def __init__(self, relationships: Iterable[CopyRelationship] = (), enabled_only: bool = False):
        """
        Args:
            relationships: Parsed relationship records, in payload order
            enabled_only: Skip links whose ``enabled`` flag is false
        """
        self._slaves: Dict[int, List[int]] = {}
        for record in relationships:
            slaves = self._slaves.setdefault(record.master_account, [])
            for link in record.copier_accounts:
                if enabled_only and not link.enabled:
                    continue
                slaves.append(link.copy_account)

        self._frozen: Dict[int, Tuple[int, ...]] = {
            master: tuple(ids) for master, ids in self._slaves.items()
        }
        self._copiers: FrozenSet[int] = frozenset(
            copier for ids in self._frozen.values() for copier in ids
        )

    @classmethod
    def from_payload(cls, payload: RelationshipSource, enabled_only: bool = False) -> "CopyRelationshipIndex":
        """Build an index from a relationship payload of any supported shape.

        Accepts a parsed ``CopierAccountsPayload``, the raw mapping
        ``{"copier_accounts": [...]}``, a bare sequence of records, or None.
        Records that cannot be parsed are skipped; nothing is raised.

        Args:
            payload: Relationship payload from the accounts collaborator
            enabled_only: Skip disabled copier links

        Returns:
            CopyRelationshipIndex (empty when the payload is absent)
        """
        if payload is None:
            return cls(enabled_only=enabled_only)
        if isinstance(payload, CopierAccountsPayload):
            return cls(payload.copier_accounts, enabled_only=enabled_only)

        if isinstance(payload, Mapping):
            raw_records = payload.get("copier_accounts")
        else:
            raw_records = payload

        if isinstance(raw_records, (str, bytes)) or not isinstance(raw_records, Iterable):
            if raw_records is not None:
                logger.warning(f"Ignoring non-array relationship payload of type {type(raw_records).__name__}")
            return cls(enabled_only=enabled_only)

        return cls(_parse_records(raw_records), enabled_only=enabled_only)

    def slaves_of(self, master_id: int) -> Tuple[int, ...]:
        """Ordered copy-account ids of ``master_id`` (empty if it has no record)."""
        return self._frozen.get(master_id, ())

    def has_master(self, account_id: int) -> bool:
        """True iff ``account_id`` has a relationship record."""
        return account_id in self._frozen

    def masters(self) -> Tuple[int, ...]:
        """Master ids in first-seen order."""
        return tuple(self._frozen)

    def copier_ids(self) -> FrozenSet[int]:
        """Every id appearing in any master's slave list."""
        return self._copiers

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._frozen

    def __len__(self) -> int:
        return len(self._frozen)

    def __repr__(self) -> str:
        return f"CopyRelationshipIndex(masters={len(self)}, copiers={len(self._copiers)})"


def _parse_records(raw_records: Iterable[Any]) -> List[CopyRelationship]:
    records = []
    for position, raw in enumerate(raw_records):
        if isinstance(raw, CopyRelationship):
            records.append(raw)
            continue
        try:
            records.append(CopyRelationship.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed relationship record at position {position}: "
                f"{e.error_count()} validation error(s)"
            )
    return records
