"""Account plane application services."""

from account_plane.app.hierarchy_service import (
    ACCOUNT_GROUPS,
    AccountsSource,
    HierarchyResult,
    HierarchyService,
    parse_accounts,
)

__all__ = ["ACCOUNT_GROUPS", "AccountsSource", "HierarchyResult", "HierarchyService", "parse_accounts"]
