"""
Unit tests for inbound payload validation.

Tests the open-trades Pydantic model, the JSON schema, the rejected
payload log and the message handler that feeds the live trade store.
"""

import json
import logging

import pytest

from contracts.schema_validator import (
    PayloadValidator,
    RejectedPayloadLog,
    ValidationMode,
    ValidationResult,
)
from contracts.validators import EXAMPLE_OPEN_TRADES, OpenTradesMessage
from position_plane.ingest import OpenTradesMessageHandler
from position_plane.store import LiveTradeStore
from shared.config import ValidationConfig
from shared.logging import init_structured_logger
from shared.models import OrderKind, PositionType


@pytest.fixture
def validator():
    return PayloadValidator()


@pytest.fixture
def log():
    return init_structured_logger("test_position_plane")


@pytest.fixture
def store():
    store = LiveTradeStore()
    store.select_account(42)
    return store


# ============================================================================
# OpenTradesMessage
# ============================================================================

class TestOpenTradesMessage:
    """Tests for the Pydantic envelope."""

    def test_example_is_valid(self):
        message = OpenTradesMessage.model_validate(EXAMPLE_OPEN_TRADES)

        assert message.account == 42
        assert message.open_trades[0].position_type is PositionType.LONG
        assert message.open_orders[0].order_type is OrderKind.STOP

    def test_missing_arrays_become_empty(self):
        message = OpenTradesMessage.model_validate({"account": 42, "open_trades": None})

        snapshot = message.to_snapshot()
        assert snapshot.trades == ()
        assert snapshot.orders == ()
        assert snapshot.is_empty

    def test_snapshot_falls_back_to_connection_account(self):
        message = OpenTradesMessage.model_validate({"open_trades": []})

        assert message.to_snapshot().account is None
        assert message.to_snapshot(account=7).account == 7

    def test_message_account_wins(self):
        message = OpenTradesMessage.model_validate({"account": 42})

        assert message.to_snapshot(account=7).account == 42

    def test_tolerant_enum_spellings(self):
        message = OpenTradesMessage.model_validate({
            "open_orders": [{
                "order_id": 5, "symbol": " EURUSD ", "position_type": "SHORT",
                "order_type": "stop_limit", "quantity": 1, "price": 1.1,
            }],
        })

        [order] = message.open_orders
        assert order.order_id == "5"
        assert order.symbol == "EURUSD"
        assert order.position_type is PositionType.SHORT
        assert order.order_type is OrderKind.STOP_LIMIT

    def test_linked_account_arrays_are_ignored(self, open_trades_message):
        message = OpenTradesMessage.model_validate(open_trades_message)

        assert not hasattr(message, "other_open_trades")
        assert message.to_snapshot().symbols() == ("EURUSD", "GBPUSD")


# ============================================================================
# PayloadValidator
# ============================================================================

class TestPayloadValidator:
    """Tests for the combined schema + Pydantic validator."""

    def test_valid_dict(self, validator, open_trades_message):
        result = validator.validate_message(open_trades_message, 'open_trades')

        assert result.is_valid
        assert bool(result)
        assert result.errors == []
        assert isinstance(result.validated_data, OpenTradesMessage)
        assert len(result.validated_data.open_orders) == 4

    def test_valid_json_string(self, validator, open_trades_message):
        result = validator.validate_message(json.dumps(open_trades_message), 'open_trades')

        assert result.is_valid

    def test_valid_bytes(self, validator, open_trades_message):
        result = validator.validate_message(json.dumps(open_trades_message).encode(), 'open_trades')

        assert result.is_valid

    def test_invalid_json(self, validator):
        result = validator.validate_message('{"account": 42', 'open_trades')

        assert not result.is_valid
        assert result.errors[0].startswith("Invalid JSON")
        assert result.validated_data is None

    def test_undecodable_bytes(self, validator):
        result = validator.validate_message(b'{"account": 42, "status": "\xff"}', 'open_trades')

        assert not result.is_valid
        assert result.errors[0].startswith("Invalid JSON")
        assert result.validated_data is None

    def test_non_object_payload(self, validator):
        result = validator.validate_message('[1, 2]', 'open_trades')

        assert not result.is_valid
        assert "JSON object" in result.errors[0]

    def test_negative_quantity_rejected_by_both(self, validator):
        payload = {"account": 42, "open_trades": [{
            "order_id": "1", "symbol": "EURUSD", "position_type": "long", "quantity": -1, "entry": 1.1,
        }]}

        result = validator.validate_message(payload, 'open_trades')

        assert not result.is_valid
        assert any(e.startswith("JSON Schema") for e in result.errors)
        assert any(e.startswith("Pydantic") for e in result.errors)
        assert result.validated_data is None

    def test_unknown_position_type_caught_by_pydantic(self, validator):
        payload = {"account": 42, "open_trades": [{
            "order_id": "1", "symbol": "EURUSD", "position_type": "sideways", "quantity": 1, "entry": 1.1,
        }]}

        result = validator.validate_message(payload, 'open_trades')

        assert not result.is_valid
        assert all(e.startswith("Pydantic") for e in result.errors)
        assert "position_type" in result.errors[0]

    def test_json_schema_only_mode(self, open_trades_message):
        validator = PayloadValidator(mode=ValidationMode.JSON_SCHEMA_ONLY)

        result = validator.validate_message(open_trades_message, 'open_trades')

        assert result.is_valid
        assert result.validated_data is None

    def test_pydantic_only_mode(self, open_trades_message):
        validator = PayloadValidator(mode='pydantic_only')

        result = validator.validate_message(open_trades_message, 'open_trades')

        assert result.is_valid
        assert isinstance(result.validated_data, OpenTradesMessage)

    def test_unknown_payload_type_warns(self, validator):
        result = validator.validate_message({}, 'quotes')

        assert result.is_valid
        assert len(result.warnings) == 2

    def test_supported_types(self, validator):
        assert validator.get_supported_payload_types() == ['open_trades']

    def test_result_to_dict(self):
        result = ValidationResult(is_valid=False, errors=["x"], warnings=[], payload_type='open_trades')

        assert result.to_dict() == {
            'is_valid': False,
            'errors': ["x"],
            'warnings': [],
            'payload_type': 'open_trades',
            'has_validated_data': False,
        }


class TestRejectedPayloadLog:
    """Tests for the rejected payload log."""

    def test_records_and_bounds_entries(self, validator):
        rejected = RejectedPayloadLog(max_entries=2)
        result = validator.validate_message('nope', 'open_trades')

        for _ in range(3):
            rejected.handle_invalid_message('nope', result, source='test')

        assert rejected.get_error_count() == 3
        assert len(rejected.entries) == 2
        assert rejected.entries[-1]['source'] == 'test'
        assert rejected.entries[-1]['error_count'] == 3

    def test_reset(self, validator):
        rejected = RejectedPayloadLog()
        rejected.handle_invalid_message('nope', validator.validate_message('nope', 'open_trades'), source='test')

        rejected.reset()

        assert rejected.get_error_count() == 0
        assert not rejected.entries


# ============================================================================
# OpenTradesMessageHandler
# ============================================================================

class TestOpenTradesMessageHandler:
    """Tests for push message ingestion."""

    def test_valid_message_replaces_snapshot(self, store, log, open_trades_message):
        handler = OpenTradesMessageHandler(store, log)

        result = handler.handle(open_trades_message)

        assert result.is_valid
        snapshot = store.current()
        assert [t.order_id for t in snapshot.trades] == ["1001", "1002"]
        assert len(snapshot.orders) == 4

    def test_empty_message_clears_positions(self, store, log, open_trades_message, empty_trades_message):
        handler = OpenTradesMessageHandler(store, log)
        handler.handle(open_trades_message)

        handler.handle(empty_trades_message)

        assert store.current().is_empty

    def test_invalid_message_leaves_store_untouched(self, store, log, open_trades_message, metrics):
        handler = OpenTradesMessageHandler(store, log, metrics=metrics)
        handler.handle(open_trades_message)
        version = store.version

        result = handler.handle('{"account": 42, "open_trades": [{"symbol": "EURUSD"}]}')

        assert not result.is_valid
        assert store.version == version
        assert len(store.current().trades) == 2
        assert handler.rejected.get_error_count() == 1
        assert metrics.value('rejected_payloads_total', {'payload_type': 'open_trades'}) == 1.0

    def test_undecodable_bytes_are_rejected_not_raised(self, store, log, open_trades_message):
        handler = OpenTradesMessageHandler(store, log)
        handler.handle(open_trades_message)
        version = store.version

        result = handler.handle(b'{"account": 42, "status": "\xff"}')

        assert not result.is_valid
        assert store.version == version
        assert handler.rejected.get_error_count() == 1
        assert handler.rejected.entries[-1]["original_message"] == b'{"account": 42, "status": "\xff"}'

    def test_apply_is_timed(self, store, log, open_trades_message):
        records = []
        capture = logging.Handler()
        capture.emit = records.append
        log.logger.addHandler(capture)
        try:
            OpenTradesMessageHandler(store, log).handle(open_trades_message)
        finally:
            log.logger.removeHandler(capture)

        [completed] = [r for r in records if r.getMessage() == "open_trades_apply completed"]
        assert completed.extra_fields["account"] == 42
        assert completed.extra_fields["duration_ms"] >= 0

    def test_strict_mode_raises(self, store, log):
        handler = OpenTradesMessageHandler(store, log, config=ValidationConfig(strict_mode=True))

        with pytest.raises(ValueError, match="Invalid open_trades payload"):
            handler.handle("not json")

        assert handler.rejected.get_error_count() == 1

    def test_connection_account_used_when_message_has_none(self, store, log):
        handler = OpenTradesMessageHandler(store, log)

        handler.handle({"open_trades": [EXAMPLE_OPEN_TRADES["open_trades"][0]]}, account_id=42)

        assert len(store.current().trades) == 1

    def test_message_without_any_account_is_dropped(self, store, log):
        handler = OpenTradesMessageHandler(store, log)
        version = store.version

        result = handler.handle({"open_trades": []})

        assert result.is_valid
        assert store.version == version

    def test_message_for_other_account_is_ignored(self, store, log, open_trades_message):
        handler = OpenTradesMessageHandler(store, log)

        handler.handle(dict(open_trades_message, account=7))

        assert store.current() is None
        assert store.snapshot_for(7) is None
