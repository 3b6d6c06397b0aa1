"""Copy-relationship resolution and account hierarchy."""

from account_plane.hierarchy.relationship_index import CopyRelationshipIndex
from account_plane.hierarchy.role_classifier import AccountRoleClassifier
from account_plane.hierarchy.hierarchy_builder import AccountHierarchyBuilder, excluded_account_ids

__all__ = [
    "CopyRelationshipIndex",
    "AccountRoleClassifier",
    "AccountHierarchyBuilder",
    "excluded_account_ids",
]
