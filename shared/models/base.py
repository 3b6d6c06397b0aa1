"""
Base models and mixins for the account relationship & live position core.

This module provides:
- BaseModel: Foundation for all data contracts (immutable, lenient on extras)
- AccountIdMixin: Integer account identity
- SymbolMixin: Instrument symbol validation
- Shared validators and utilities

Best Practices:
1. Use frozen=True for immutability (thread-safe by default)
2. Define validators inline using @field_validator
3. Ignore unknown wire fields; upstream payloads carry far more than we read
4. Use Annotated types with Field descriptions (self-documenting)
"""

from typing import Annotated, Any
from pydantic import BaseModel as PydanticBaseModel, Field, ConfigDict, field_validator


class BaseModel(PydanticBaseModel):
    """
    Base model for all data contracts in the core.

    Features:
    - Immutable by default (frozen=True)
    - Unknown fields ignored (upstream payloads are wide)
    - Aliases and field names both accepted on input
    - JSON serialization support
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        validate_assignment=True,
        use_enum_values=False,
        arbitrary_types_allowed=False,
    )


class AccountIdMixin(PydanticBaseModel):
    """
    Mixin for models keyed by an integer account id.

    Account ids are the only identity an account has; display attributes
    never take part in equality checks inside the core.
    """

    id: Annotated[
        int,
        Field(
            description="Unique integer account id"
        )
    ]


class SymbolMixin(PydanticBaseModel):
    """
    Mixin for models requiring symbol validation.

    Symbols are compared by exact equality against the host's current
    symbol, so they are only stripped of surrounding whitespace, never
    case-folded or rewritten (broker suffixes like 'EURUSD.a' survive).
    """

    symbol: Annotated[
        str,
        Field(
            min_length=1,
            max_length=32,
            description="Instrument symbol exactly as the broker reports it (e.g., 'EURUSD', 'BTCUSDT')"
        )
    ]

    @field_validator('symbol', mode='before')
    @classmethod
    def strip_symbol(cls, v: Any) -> Any:
        """Strip surrounding whitespace from string symbols."""
        if isinstance(v, str):
            return v.strip()
        return v


def coerce_sequence(v: Any) -> list:
    """Coerce an absent or malformed nested array to an empty list.

    Args:
        v: Raw value from a wire payload

    Returns:
        The value as a list, or an empty list if it is not a list/tuple
    """
    if isinstance(v, (list, tuple)):
        return list(v)
    return []
