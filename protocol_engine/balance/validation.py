"""
Table Validation - Schema validation for interaction tables.

Validates that:
1. Every damage type and status type has a rule
2. Multipliers and magnitudes are non-negative
3. Stack caps are positive (or explicitly uncapped)
4. Ladders agree with caps (viral ladder covers every stack)
"""

from __future__ import annotations
from dataclasses import dataclass

from .interaction_table import DamageType, InteractionTable, StatusType


class TableValidationError(Exception):
    """Raised when table validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Interaction table validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str]
    warnings: list[str]


def validate_table(table: InteractionTable, raise_on_error: bool = False) -> ValidationResult:
    """
    Validate a complete interaction table.

    Returns ValidationResult with errors and warnings.
    Raises TableValidationError if raise_on_error=True and errors exist.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not table.version:
        errors.append("version is required")

    for damage_type in DamageType:
        if damage_type not in table.damage_types:
            errors.append(f"Missing damage rule for '{damage_type.value}'")

    for status_type in StatusType:
        if status_type not in table.statuses:
            warnings.append(f"No status rule for '{status_type.value}' - defaults apply")

    for damage_type, rule in table.damage_types.items():
        errors.extend(_validate_damage_rule(damage_type, rule, table))

    for status_type, rule in table.statuses.items():
        errors.extend(_validate_status_rule(status_type, rule))

    # Ladder must cover every stack the cap allows
    viral = table.statuses.get(StatusType.VIRAL_INFECTION)
    if viral and viral.max_stacks is not None:
        if len(table.viral_ladder) != viral.max_stacks + 1:
            errors.append(
                f"viral_ladder has {len(table.viral_ladder)} entries, "
                f"expected {viral.max_stacks + 1} (0..max_stacks)"
            )
    if table.viral_ladder and table.viral_ladder[0] != 1.0:
        warnings.append("viral_ladder[0] is not 1.0 - uninfected targets take modified damage")
    if any(b < a for a, b in zip(table.viral_ladder, table.viral_ladder[1:])):
        errors.append("viral_ladder must be non-decreasing")

    if not 0 < table.corrosive_strip_fraction <= 1:
        errors.append("corrosive_strip_fraction must be in (0, 1]")
    if table.corrosive_min_strip < 1:
        errors.append("corrosive_min_strip must be >= 1")
    if not 0 <= table.emp_shield_drain <= 1:
        errors.append("emp_shield_drain must be in [0, 1]")
    if table.displace_push < 0 or table.displace_push_heavy < table.displace_push:
        errors.append("displace pushes must satisfy 0 <= push <= push_heavy")

    if table.lag.action_fail_chance < 0 or table.lag.cooldown_increase < 0:
        errors.append("lag modifiers must be non-negative")
    if table.shield_regen.rate_per_second < 0 or table.shield_regen.delay_ms < 0:
        errors.append("shield_regen values must be non-negative")

    result = ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )
    if raise_on_error and errors:
        raise TableValidationError(errors)
    return result


def _validate_damage_rule(damage_type, rule, table: InteractionTable) -> list[str]:
    """Validate a single damage type rule."""
    errors = []
    name = damage_type.value
    for layer in ("shield", "armor", "hp"):
        value = getattr(rule, layer)
        if value < 0:
            errors.append(f"Damage type '{name}': {layer} multiplier must be >= 0")
        elif value == 0 and not rule.bypass_defenses:
            errors.append(f"Damage type '{name}': {layer} multiplier of 0 makes the layer immune")

    if rule.bypass_defenses:
        if rule.status is None:
            errors.append(f"Damage type '{name}' bypasses defenses but applies no status")
        elif table.status_rule(rule.status).tick_interval_ms is None:
            errors.append(
                f"Damage type '{name}' bypasses defenses but '{rule.status.value}' does not tick"
            )
    return errors


def _validate_status_rule(status_type, rule) -> list[str]:
    """Validate a single status rule."""
    errors = []
    name = status_type.value
    if rule.max_stacks is not None and rule.max_stacks < 1:
        errors.append(f"Status '{name}': max_stacks must be >= 1 or None")
    if rule.duration_ms is not None and rule.duration_ms <= 0:
        errors.append(f"Status '{name}': duration_ms must be > 0 or None")
    if rule.magnitude < 0:
        errors.append(f"Status '{name}': magnitude must be >= 0")
    if rule.tick_interval_ms is not None and rule.tick_interval_ms <= 0:
        errors.append(f"Status '{name}': tick_interval_ms must be > 0")
    return errors
