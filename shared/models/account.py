"""
Account and copy-relationship models.

Defines:
- Account: Trading account (identity + display attributes)
- CopierLink: One master -> copy-account link with its per-link settings
- CopyRelationship: A master account and its ordered copier links
- CopierAccountsPayload: The accounts collaborator's relationship payload
- AccountRole: MASTER / COPIER / STANDALONE
- HierarchyNode: One master with its resolved slave accounts

Accounts and relationships are pure inputs: fetched per refresh cycle,
rebuilt fresh on every hierarchy computation, never mutated in place.
"""

import logging
from enum import Enum
from typing import Annotated, Any, List, Optional, Tuple
from pydantic import Field, ValidationError, field_validator

from shared.models.base import BaseModel, AccountIdMixin, coerce_sequence

logger = logging.getLogger(__name__)


class AccountRole(str, Enum):
    """Role of an account inside the copy-trading hierarchy."""
    MASTER = "master"            # Trades mirrored out to copiers
    COPIER = "copier"            # Receives mirrored trades
    STANDALONE = "none"          # Neither


class Account(BaseModel, AccountIdMixin):
    """
    Trading account.

    Identity is the integer id; everything else is display data the
    hierarchy carries through untouched.

    Example:
        Account(id=1, name='FTMO 100k', balance=100000.0, currency='USD')
    """

    name: Annotated[
        str,
        Field(
            default="",
            description="Display name"
        )
    ]

    balance: Annotated[
        float,
        Field(
            default=0.0,
            description="Current account balance"
        )
    ]

    currency: Annotated[
        str,
        Field(
            default="USD",
            description="Account currency code"
        )
    ]

    account_type: Annotated[
        Optional[str],
        Field(
            default=None,
            description="Account type (demo, broker, funded, evaluation, competition)"
        )
    ]

    status: Annotated[
        Optional[str],
        Field(
            default=None,
            description="Account status (active, passed, failed, disconnected, ...)"
        )
    ]

    firm: Optional[str] = None
    exchange: Optional[str] = None


class CopierLink(BaseModel):
    """
    Single copier link of a master account.

    Only ``copy_account`` matters for hierarchy resolution; the multipliers
    and filters are carried for callers that display or edit them.
    """

    copy_account: Annotated[
        int,
        Field(
            description="Target copy-account id"
        )
    ]

    enabled: bool = True
    lot_multiplier: float = 1.0
    risk_multiplier: float = 1.0
    copy_tp_sl: bool = False
    ignore_symbols: Tuple[str, ...] = ()

    @field_validator('ignore_symbols', mode='before')
    @classmethod
    def tolerate_missing_symbols(cls, v: Any) -> Any:
        return coerce_sequence(v)


class CopyRelationship(BaseModel):
    """
    Master account with its ordered copier links.

    A missing, null or non-array ``copier_accounts`` is treated as an empty
    list, and individual link entries that cannot be parsed are dropped.
    """

    master_account: Annotated[
        int,
        Field(
            description="Master account id"
        )
    ]

    copier_accounts: Annotated[
        Tuple[CopierLink, ...],
        Field(
            default=(),
            description="Ordered copier links of this master"
        )
    ]

    name: Optional[str] = None
    currency: Optional[str] = None
    active: Optional[int] = None
    inactive: Optional[int] = None

    @field_validator('copier_accounts', mode='before')
    @classmethod
    def tolerate_malformed_links(cls, v: Any) -> List[Any]:
        """Coerce absent arrays to empty and drop unparseable link entries."""
        links = []
        for item in coerce_sequence(v):
            if isinstance(item, CopierLink):
                links.append(item)
                continue
            try:
                links.append(CopierLink.model_validate(item))
            except ValidationError as e:
                logger.debug(f"Dropping malformed copier link {item!r}: {e.error_count()} error(s)")
        return links

    @property
    def copy_account_ids(self) -> Tuple[int, ...]:
        """Copy-account ids in link order."""
        return tuple(link.copy_account for link in self.copier_accounts)


class CopierAccountsPayload(BaseModel):
    """
    Relationship payload from the accounts collaborator.

    Shape: ``{"copier_accounts": [{"master_account": 1, "copier_accounts": [...]}]}``
    """

    copier_accounts: Annotated[
        Tuple[CopyRelationship, ...],
        Field(
            default=(),
            description="Relationship records, one per master (duplicates allowed)"
        )
    ]

    @field_validator('copier_accounts', mode='before')
    @classmethod
    def tolerate_missing_records(cls, v: Any) -> List[Any]:
        return coerce_sequence(v)


class HierarchyNode(BaseModel):
    """
    One node of the account hierarchy.

    ``master`` is either a master account or a standalone account (in which
    case ``slaves`` is empty).
    """

    master: Account
    slaves: Tuple[Account, ...] = ()

    @property
    def account_ids(self) -> Tuple[int, ...]:
        """Master id followed by slave ids."""
        return (self.master.id,) + tuple(slave.id for slave in self.slaves)
