# position_plane/ingest/message_handler.py: push message -> validated snapshot -> store
from typing import Any, Optional

from contracts.schema_validator import PayloadValidator, RejectedPayloadLog, ValidationMode, ValidationResult
from position_plane.store import LiveTradeStore
from shared.config import ValidationConfig
from shared.logging import PerformanceLogger, StructuredLogger, TraceContext
from shared.metrics import CoreMetrics

PAYLOAD_TYPE = 'open_trades'


class OpenTradesMessageHandler:
    """
    Turns open-trades push messages into store updates.

    Flow:
    1. Parse + validate the raw message (JSON schema and Pydantic)
    2. Invalid: record in the rejected-payload log, leave the store untouched
    3. Valid: build a LiveTradeSnapshot and replace the account's snapshot
    """

    def __init__(
        self,
        store: LiveTradeStore,
        log: StructuredLogger,
        config: Optional[ValidationConfig] = None,
        metrics: Optional[CoreMetrics] = None,
        source: str = "open_trades_ws",
    ):
        self.store = store
        self.log = log
        self.config = config or ValidationConfig()
        self.metrics = metrics
        self.source = source
        self.validator = PayloadValidator(mode=ValidationMode(self.config.mode))
        self.rejected = RejectedPayloadLog()

    def handle(self, raw: Any, account_id: Optional[int] = None) -> ValidationResult:
        """
        Apply one push message.

        Args:
            raw: JSON string/bytes or decoded mapping
            account_id: Account the connection was opened for; used when
                the message itself carries no ``account``

        Returns:
            ValidationResult of the message

        Raises:
            ValueError: If the message is invalid and strict_mode is set
        """
        with TraceContext():
            result = self.validator.validate_message(raw, PAYLOAD_TYPE)

            if not result.is_valid:
                self.rejected.handle_invalid_message(raw, result, source=self.source)
                if self.metrics is not None:
                    self.metrics.rejected_payloads.labels(payload_type=PAYLOAD_TYPE).inc()
                if self.config.strict_mode:
                    raise ValueError(f"Invalid {PAYLOAD_TYPE} payload: {result.errors}")
                return result

            snapshot = result.validated_data.to_snapshot(account=account_id)
            if snapshot.account is None:
                self.log.warning("open_trades_without_account", source=self.source)
                return result

            with PerformanceLogger(self.log, "open_trades_apply", account=snapshot.account, source=self.source):
                applied = self.store.update_positions(snapshot.account, snapshot)
            self.log.debug(
                "open_trades_applied" if applied else "open_trades_ignored",
                account=snapshot.account,
                trades=len(snapshot.trades),
                orders=len(snapshot.orders),
                store_version=self.store.version,
            )
            return result
