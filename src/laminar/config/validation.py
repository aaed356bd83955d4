"""
Configuration validation for Laminar.

Declarative validation for the parameter dataclasses: each config lists
rules per field in ``_validation_rules`` and calls ``validate_config()``
from ``__post_init__``. Failures raise ``ConfigurationError`` listing every
violated rule at once.

Author: Laminar Project
Date: October 2026
"""

from __future__ import annotations

import math
from typing import Any, Callable, ClassVar, Dict, List, Tuple

from laminar.errors import ConfigurationError


# =============================================================================
# DECLARATIVE VALIDATION FRAMEWORK
# =============================================================================


class ValidatorRegistry:
    """Registry of predefined validation rules.

    Usage:
        validator = ValidatorRegistry.get_validator('non_negative')
        validator(0.1, 'opt_thresh.send')   # Passes
        validator(-0.1, 'opt_thresh.send')  # Raises ConfigurationError
    """

    _validators: Dict[str, Callable[[Any, str], None]] = {}

    @classmethod
    def register(cls, name: str, validator: Callable[[Any, str], None]) -> None:
        """Register a validation function."""
        cls._validators[name] = validator

    @classmethod
    def get_validator(cls, rule: str) -> Callable[[Any, str], None]:
        """Get validator by name or parse compound rule."""
        # Handle range rules: range(min, max)
        if rule.startswith("range("):
            return cls._parse_range_rule(rule)

        if rule in cls._validators:
            return cls._validators[rule]

        raise ValueError(f"Unknown validation rule: {rule}")

    @classmethod
    def _parse_range_rule(cls, rule: str) -> Callable[[Any, str], None]:
        """Parse range(min, max) rules."""
        inner = rule[6:-1]  # Remove "range(" and ")"
        parts = [p.strip() for p in inner.split(",")]

        if len(parts) != 2:
            raise ValueError(f"Invalid range rule format: {rule}")

        min_val = float(parts[0])
        max_val = float(parts[1])

        def range_validator(value: Any, name: str) -> None:
            _require_numeric(value, name)
            if not (min_val <= value <= max_val):
                raise ConfigurationError(
                    f"{name}={value} outside valid range [{min_val}, {max_val}]"
                )

        return range_validator


def _require_numeric(value: Any, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be numeric, got {type(value)}")


def _register_builtin_validators() -> None:
    """Register standard validation rules."""

    def positive(value: Any, name: str) -> None:
        """Value must be > 0."""
        _require_numeric(value, name)
        if value <= 0:
            raise ConfigurationError(f"{name}={value} must be positive")

    def non_negative(value: Any, name: str) -> None:
        """Value must be >= 0."""
        _require_numeric(value, name)
        if value < 0:
            raise ConfigurationError(f"{name}={value} must be non-negative")

    def finite(value: Any, name: str) -> None:
        """Value must be finite (not inf or nan)."""
        _require_numeric(value, name)
        if not math.isfinite(value):
            raise ConfigurationError(f"{name}={value} must be finite (not inf/nan)")

    def unit_interval(value: Any, name: str) -> None:
        """Value must be in [0, 1]."""
        _require_numeric(value, name)
        if not (0.0 <= value <= 1.0):
            raise ConfigurationError(f"{name}={value} must be in [0, 1]")

    def quarters(value: Any, name: str) -> None:
        """Value must be a tuple of quarter indices in 0..3."""
        if not isinstance(value, tuple):
            raise ConfigurationError(f"{name} must be a tuple, got {type(value)}")
        for q in value:
            if isinstance(q, bool) or not isinstance(q, int) or not 0 <= q <= 3:
                raise ConfigurationError(f"{name} entries must be quarters 0..3, got {q!r}")

    ValidatorRegistry.register("positive", positive)
    ValidatorRegistry.register("non_negative", non_negative)
    ValidatorRegistry.register("finite", finite)
    ValidatorRegistry.register("unit_interval", unit_interval)
    ValidatorRegistry.register("quarters", quarters)


_register_builtin_validators()


class ValidatedConfig:
    """Mixin for declarative config validation.

    Usage:
        @dataclass
        class OptThreshParams(ValidatedConfig):
            send: float = 0.1
            delta: float = 0.005

            _validation_rules: ClassVar[Dict[str, Tuple[str, ...]]] = {
                'send': ('non_negative', 'finite'),
                'delta': ('non_negative', 'finite'),
            }

            def __post_init__(self) -> None:
                self.validate_config()
    """

    _validation_rules: ClassVar[Dict[str, Tuple[str, ...]]] = {}

    def validate_config(self) -> None:
        """Validate configuration based on _validation_rules.

        Raises:
            ConfigurationError: If any validation fails
        """
        errors: List[str] = []

        for field_name, rules in self._validation_rules.items():
            if not hasattr(self, field_name):
                errors.append(f"Validation rule for non-existent field: {field_name}")
                continue

            value = getattr(self, field_name)
            for rule in rules:
                try:
                    ValidatorRegistry.get_validator(rule)(value, field_name)
                except ConfigurationError as e:
                    errors.append(str(e))

        if errors:
            raise ConfigurationError(
                f"{self.__class__.__name__} validation failed:\n"
                + "\n".join(f"  - {e}" for e in errors)
            )


__all__ = [
    "ValidatorRegistry",
    "ValidatedConfig",
]
