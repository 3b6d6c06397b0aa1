"""
Centralized schema validation for inbound payloads.

This module provides a unified interface for validating messages using:
1. Pydantic models (runtime type checking and coercion)
2. JSON Schema validation (structural validation)

Usage:
    from contracts.schema_validator import PayloadValidator

    validator = PayloadValidator()
    result = validator.validate_message(raw_json, 'open_trades')
    if result.is_valid:
        snapshot = result.validated_data.to_snapshot()
    else:
        print(f"Validation errors: {result.errors}")
"""

import json
import logging
from collections import deque
from pathlib import Path
from typing import Dict, Any, Deque, Optional, List, Union, Type
from enum import Enum
from dataclasses import dataclass

from pydantic import BaseModel, ValidationError
from jsonschema import Draft7Validator

from contracts.validators import OpenTradesMessage


# ============================================================================
# Configuration and Constants
# ============================================================================

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent
JSON_SCHEMAS = {
    'open_trades': SCHEMA_DIR / 'open_trades.schema.json',
}

PYDANTIC_MODELS: Dict[str, Type[BaseModel]] = {
    'open_trades': OpenTradesMessage,
}


class ValidationMode(str, Enum):
    """Validation modes."""
    PYDANTIC_ONLY = 'pydantic_only'
    JSON_SCHEMA_ONLY = 'json_schema_only'
    BOTH = 'both'  # Default: run both validators


# ============================================================================
# Validation Result
# ============================================================================

@dataclass
class ValidationResult:
    """
    Result of payload validation.

    Attributes:
        is_valid: Whether the payload passed validation
        errors: List of validation error messages
        warnings: List of validation warnings (non-critical)
        validated_data: The validated Pydantic model instance, if available
        payload_type: The type of payload that was validated
    """
    is_valid: bool
    errors: List[str]
    warnings: List[str]
    validated_data: Optional[BaseModel] = None
    payload_type: Optional[str] = None

    def __bool__(self) -> bool:
        """Allow using ValidationResult as a boolean."""
        return self.is_valid

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'is_valid': self.is_valid,
            'errors': self.errors,
            'warnings': self.warnings,
            'payload_type': self.payload_type,
            'has_validated_data': self.validated_data is not None,
        }


# ============================================================================
# Payload Validator
# ============================================================================

class PayloadValidator:
    """
    Validator for inbound payloads.

    Runs the Pydantic model and/or the JSON schema registered for the
    payload type. JSON schemas are loaded once and cached.
    """

    def __init__(self, mode: ValidationMode = ValidationMode.BOTH):
        """
        Args:
            mode: Validation mode (pydantic_only, json_schema_only, or both)
        """
        self.mode = ValidationMode(mode)
        self._json_validators: Dict[str, Draft7Validator] = {}
        self._load_json_schemas()

    def _load_json_schemas(self) -> None:
        """Load and cache JSON schemas."""
        if self.mode == ValidationMode.PYDANTIC_ONLY:
            return

        for payload_type, schema_path in JSON_SCHEMAS.items():
            if not schema_path.exists():
                logger.warning(f"JSON schema not found: {schema_path}")
                continue
            with open(schema_path, 'r', encoding='utf-8') as f:
                schema = json.load(f)
            Draft7Validator.check_schema(schema)
            self._json_validators[payload_type] = Draft7Validator(schema)
            logger.debug(f"Loaded JSON schema for {payload_type}")

    def validate_message(
        self,
        data: Union[Dict[str, Any], str, bytes],
        payload_type: str,
    ) -> ValidationResult:
        """
        Validate a payload using the configured validation mode.

        Args:
            data: Payload (dict or JSON string/bytes)
            payload_type: Type of payload (e.g., 'open_trades')

        Returns:
            ValidationResult with validation status and errors
        """
        errors: List[str] = []
        warnings: List[str] = []
        validated_data = None

        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                return ValidationResult(
                    is_valid=False,
                    errors=[f"Invalid JSON: {e}"],
                    warnings=[],
                    payload_type=payload_type,
                )

        if not isinstance(data, dict):
            return ValidationResult(
                is_valid=False,
                errors=[f"Payload must be a JSON object, got {type(data).__name__}"],
                warnings=[],
                payload_type=payload_type,
            )

        # Structural check first; its messages point at the offending path
        if self.mode in (ValidationMode.JSON_SCHEMA_ONLY, ValidationMode.BOTH):
            schema_result = self._validate_with_json_schema(data, payload_type)
            errors.extend(schema_result.errors)
            warnings.extend(schema_result.warnings)

        if self.mode in (ValidationMode.PYDANTIC_ONLY, ValidationMode.BOTH):
            pydantic_result = self._validate_with_pydantic(data, payload_type)
            errors.extend(pydantic_result.errors)
            warnings.extend(pydantic_result.warnings)
            validated_data = pydantic_result.validated_data

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            validated_data=validated_data if not errors else None,
            payload_type=payload_type,
        )

    def _validate_with_pydantic(self, data: Dict[str, Any], payload_type: str) -> ValidationResult:
        errors = []
        warnings = []
        validated_data = None

        model_class = PYDANTIC_MODELS.get(payload_type)
        if model_class is None:
            warnings.append(f"No Pydantic model found for payload type: {payload_type}")
            return ValidationResult(is_valid=True, errors=[], warnings=warnings, payload_type=payload_type)

        try:
            validated_data = model_class.model_validate(data)
        except ValidationError as e:
            for error in e.errors():
                field_path = ' -> '.join(str(loc) for loc in error['loc']) or 'root'
                errors.append(f"Pydantic: {field_path}: {error['msg']}")
            logger.debug(f"Pydantic validation failed for {payload_type}: {errors}")

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            validated_data=validated_data,
            payload_type=payload_type,
        )

    def _validate_with_json_schema(self, data: Dict[str, Any], payload_type: str) -> ValidationResult:
        errors = []
        warnings = []

        validator = self._json_validators.get(payload_type)
        if validator is None:
            warnings.append(f"No JSON schema found for payload type: {payload_type}")
            return ValidationResult(is_valid=True, errors=[], warnings=warnings, payload_type=payload_type)

        for error in validator.iter_errors(data):
            field_path = ' -> '.join(str(p) for p in error.path) or 'root'
            errors.append(f"JSON Schema: {field_path}: {error.message}")

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            payload_type=payload_type,
        )

    def get_supported_payload_types(self) -> List[str]:
        return sorted(set(PYDANTIC_MODELS) | set(JSON_SCHEMAS))


# ============================================================================
# Rejected Payload Log
# ============================================================================

class RejectedPayloadLog:
    """
    Handler for invalid payloads.

    Logs validation errors and keeps the most recent rejections in memory
    for inspection (there is no dead-letter topic in this deployment).
    """

    def __init__(self, max_entries: int = 100):
        self.error_count = 0
        self.entries: Deque[Dict[str, Any]] = deque(maxlen=max_entries)
        self.logger = logging.getLogger(f"{__name__}.RejectedPayloadLog")

    def handle_invalid_message(
        self,
        message: Any,
        validation_result: ValidationResult,
        source: str,
    ) -> None:
        """
        Record an invalid payload.

        Args:
            message: The invalid payload as received
            validation_result: Validation result with errors
            source: Where the payload came from (e.g., 'open_trades_ws')
        """
        self.error_count += 1

        entry = {
            'source': source,
            'payload_type': validation_result.payload_type,
            'errors': validation_result.errors,
            'warnings': validation_result.warnings,
            'original_message': message,
            'error_count': self.error_count,
        }
        self.entries.append(entry)

        self.logger.error(f"Invalid {validation_result.payload_type} payload from {source}: {validation_result.errors}")

    def get_error_count(self) -> int:
        return self.error_count

    def reset(self) -> None:
        self.error_count = 0
        self.entries.clear()
