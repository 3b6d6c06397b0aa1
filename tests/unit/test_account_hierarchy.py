"""
Unit tests for account_plane.hierarchy.

Tests:
- CopyRelationshipIndex: payload shapes, concatenation, tolerance
- AccountRoleClassifier: master / copier / standalone precedence
- AccountHierarchyBuilder: grouping, ordering, the missing-master drop
"""

import pytest

from account_plane.hierarchy import (
    AccountHierarchyBuilder,
    AccountRoleClassifier,
    CopyRelationshipIndex,
    excluded_account_ids,
)
from fixtures import make_accounts, relationship_payload
from shared.models import AccountRole, CopierAccountsPayload


def node_ids(nodes):
    """[(master id, [slave ids]), ...] for compact assertions."""
    return [(node.master.id, [slave.id for slave in node.slaves]) for node in nodes]


# ============================================================================
# Tests for CopyRelationshipIndex
# ============================================================================

@pytest.mark.unit
class TestCopyRelationshipIndex:
    """Tests for the master -> copier lookup."""

    def test_slaves_in_link_order(self):
        index = CopyRelationshipIndex.from_payload(relationship_payload({1: [3, 2]}))

        assert index.slaves_of(1) == (3, 2)

    def test_unknown_master_has_no_slaves(self):
        index = CopyRelationshipIndex.from_payload(relationship_payload({1: [2]}))

        assert index.slaves_of(7) == ()
        assert not index.has_master(7)

    def test_duplicate_master_records_concatenate(self):
        payload = {
            "copier_accounts": [
                {"master_account": 1, "copier_accounts": [{"copy_account": 2}]},
                {"master_account": 1, "copier_accounts": [{"copy_account": 3}, {"copy_account": 2}]},
            ]
        }
        index = CopyRelationshipIndex.from_payload(payload)

        assert index.slaves_of(1) == (2, 3, 2)
        assert len(index) == 1

    @pytest.mark.parametrize("payload", [None, {}, {"copier_accounts": None}, {"copier_accounts": "oops"}, []])
    def test_absent_payload_gives_empty_index(self, payload):
        index = CopyRelationshipIndex.from_payload(payload)

        assert len(index) == 0
        assert index.copier_ids() == frozenset()

    @pytest.mark.parametrize("nested", [None, "not-a-list", 42])
    def test_malformed_nested_array_is_empty(self, nested):
        index = CopyRelationshipIndex.from_payload(
            {"copier_accounts": [{"master_account": 1, "copier_accounts": nested}]}
        )

        assert index.has_master(1)
        assert index.slaves_of(1) == ()

    def test_missing_nested_array_is_empty(self):
        index = CopyRelationshipIndex.from_payload({"copier_accounts": [{"master_account": 1}]})

        assert index.has_master(1)
        assert index.slaves_of(1) == ()

    def test_malformed_records_and_links_are_skipped(self):
        payload = {
            "copier_accounts": [
                {"name": "no master id"},
                "garbage",
                {"master_account": 1, "copier_accounts": [{"enabled": True}, {"copy_account": 2}, None]},
            ]
        }
        index = CopyRelationshipIndex.from_payload(payload)

        assert index.masters() == (1,)
        assert index.slaves_of(1) == (2,)

    def test_accepts_parsed_payload(self, copier_payload):
        parsed = CopierAccountsPayload.model_validate(copier_payload)

        assert CopyRelationshipIndex.from_payload(parsed).slaves_of(1) == (2, 3)

    def test_enabled_only_skips_disabled_links(self, copier_payload):
        index = CopyRelationshipIndex.from_payload(copier_payload, enabled_only=True)

        assert index.slaves_of(1) == (2,)
        assert 3 not in index.copier_ids()

    def test_copier_ids_spans_all_masters(self, copier_payload):
        index = CopyRelationshipIndex.from_payload(copier_payload)

        assert index.copier_ids() == frozenset({2, 3, 5})
        assert index.masters() == (1, 99)


# ============================================================================
# Tests for AccountRoleClassifier
# ============================================================================

@pytest.mark.unit
class TestAccountRoleClassifier:
    """Tests for role classification."""

    def test_roles(self):
        classifier = AccountRoleClassifier(CopyRelationshipIndex.from_payload(relationship_payload({1: [2, 3]})))

        assert classifier.classify(1) is AccountRole.MASTER
        assert classifier.classify(2) is AccountRole.COPIER
        assert classifier.classify(3) is AccountRole.COPIER
        assert classifier.classify(4) is AccountRole.STANDALONE

    def test_master_without_links_is_still_master(self):
        classifier = AccountRoleClassifier(CopyRelationshipIndex.from_payload(relationship_payload({1: []})))

        assert classifier.is_master(1)
        assert classifier.classify(1) is AccountRole.MASTER

    def test_master_wins_over_copier(self):
        classifier = AccountRoleClassifier(
            CopyRelationshipIndex.from_payload(relationship_payload({1: [2], 2: [3]}))
        )

        assert classifier.is_master(2) and classifier.is_copier(2)
        assert classifier.classify(2) is AccountRole.MASTER

    def test_no_payload_means_standalone(self):
        classifier = AccountRoleClassifier(CopyRelationshipIndex.from_payload(None))

        assert classifier.classify(1) is AccountRole.STANDALONE
        assert not classifier.is_master(1)
        assert not classifier.is_copier(1)


# ============================================================================
# Tests for AccountHierarchyBuilder
# ============================================================================

@pytest.mark.unit
class TestAccountHierarchyBuilder:
    """Tests for hierarchy construction."""

    def test_master_with_copiers_and_standalone(self):
        accounts = make_accounts(1, 2, 3, 4)
        index = CopyRelationshipIndex.from_payload(relationship_payload({1: [2, 3]}))

        nodes = AccountHierarchyBuilder().build(accounts, index)

        assert node_ids(nodes) == [(1, [2, 3]), (4, [])]

    def test_copier_of_absent_master_is_dropped(self):
        accounts = make_accounts(1, 5)
        index = CopyRelationshipIndex.from_payload(relationship_payload({99: [5]}))

        nodes = AccountHierarchyBuilder().build(accounts, index)

        assert node_ids(nodes) == [(1, [])]
        assert all(5 not in node.account_ids for node in nodes)
        assert excluded_account_ids(accounts, nodes) == {5}

    def test_build_with_exclusions_returns_dropped_ids(self):
        accounts = make_accounts(1, 2, 5)
        index = CopyRelationshipIndex.from_payload(relationship_payload({1: [2], 99: [5]}))

        nodes, excluded = AccountHierarchyBuilder().build_with_exclusions(accounts, index)

        assert node_ids(nodes) == [(1, [2])]
        assert excluded == {5}

    def test_slave_ids_missing_from_accounts_are_dropped(self):
        accounts = make_accounts(1, 2)
        index = CopyRelationshipIndex.from_payload(relationship_payload({1: [2, 8, 9]}))

        nodes = AccountHierarchyBuilder().build(accounts, index)

        assert node_ids(nodes) == [(1, [2])]

    def test_masters_before_standalones_in_input_order(self):
        accounts = make_accounts(7, 1, 6, 2, 3)
        index = CopyRelationshipIndex.from_payload(relationship_payload({3: [6], 1: [2]}))

        nodes = AccountHierarchyBuilder().build(accounts, index)

        assert node_ids(nodes) == [(1, [2]), (3, [6]), (7, [])]

    def test_no_relationships_gives_all_standalone(self):
        accounts = make_accounts(3, 1, 2)

        nodes = AccountHierarchyBuilder().build(accounts, CopyRelationshipIndex.from_payload(None))

        assert node_ids(nodes) == [(3, []), (1, []), (2, [])]

    def test_empty_accounts(self):
        index = CopyRelationshipIndex.from_payload(relationship_payload({1: [2]}))

        assert AccountHierarchyBuilder().build([], index) == []

    def test_slaves_are_the_input_account_objects(self):
        accounts = make_accounts(1, 2)
        index = CopyRelationshipIndex.from_payload(relationship_payload({1: [2]}))

        nodes = AccountHierarchyBuilder().build(accounts, index)

        assert nodes[0].master is accounts[0]
        assert nodes[0].slaves[0] is accounts[1]

    def test_fixture_payload(self, accounts_payload, copier_payload):
        from account_plane.app import parse_accounts

        accounts = parse_accounts(accounts_payload)
        index = CopyRelationshipIndex.from_payload(copier_payload)

        nodes = AccountHierarchyBuilder().build(accounts, index)

        assert node_ids(nodes) == [(1, [2, 3]), (4, [])]
        assert excluded_account_ids(accounts, nodes) == {5}

    def test_metrics_record_build_and_exclusions(self, metrics):
        accounts = make_accounts(1, 2, 5)
        index = CopyRelationshipIndex.from_payload(relationship_payload({1: [2], 99: [5]}))

        AccountHierarchyBuilder(metrics=metrics).build(accounts, index)

        assert metrics.value('hierarchy_builds_total') == 1.0
        assert metrics.value('hierarchy_excluded_accounts_total') == 1.0
        assert metrics.value('hierarchy_nodes') == 1.0
