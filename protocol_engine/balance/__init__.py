"""Balance data - versioned damage interaction table and its validation."""

from .interaction_table import (
    TABLE_VERSION,
    DamageType,
    StatusType,
    DamageTypeRule,
    StatusRule,
    LagRule,
    ShieldRegenRule,
    InteractionTable,
    default_table,
    load_table,
)
from .validation import validate_table, TableValidationError, ValidationResult

__all__ = [
    "TABLE_VERSION",
    "DamageType",
    "StatusType",
    "DamageTypeRule",
    "StatusRule",
    "LagRule",
    "ShieldRegenRule",
    "InteractionTable",
    "default_table",
    "load_table",
    "validate_table",
    "TableValidationError",
    "ValidationResult",
]
