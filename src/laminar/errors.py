"""
Custom exception classes for Laminar.

Exception Hierarchy:
====================
LaminarError (base) - Base exception for all Laminar-specific errors
├── ConfigurationError - Invalid configuration parameters
├── BuildError - Layer or network construction failed
├── UnknownVariableError - Unit variable name not recognized
└── IndexOutOfRangeError - Unit index outside the layer

Lookup errors are raised to the caller and are recoverable: a failed
``value_at_index`` never leaves a layer in a bad state. ``BuildError`` is
fatal to network assembly; a network whose build failed refuses to cycle.

Author: Laminar Project
Date: October 2026
"""

from __future__ import annotations

from typing import Sequence, Union

# =============================================================================
# Exception Hierarchy
# =============================================================================


class LaminarError(Exception):
    """Base exception for all Laminar-specific errors.

    All custom exceptions in Laminar inherit from this class, enabling
    code to catch Laminar errors specifically:

        try:
            net.build()
        except LaminarError as e:
            logger.error(f"Laminar error: {e}")
    """


class ConfigurationError(LaminarError):
    """Invalid configuration parameters.

    Raised when configuration values are out of valid range or incompatible
    with each other.

    Example:
        raise ConfigurationError("opt_thresh.send must be >= 0, got -0.1")
    """


class BuildError(LaminarError):
    """Layer or network construction failed.

    Raised by the base layer build step (empty shape, projection wired to
    the wrong layer, pool inhibition on a non-4D shape) and propagated
    unchanged by the deep layer build. Also raised when cycling a network
    that was never built successfully.

    Args:
        layer_name: Name of the layer being built
        message: Description of the failure
    """

    def __init__(self, layer_name: str, message: str):
        super().__init__(f"[{layer_name}] {message}")
        self.layer_name = layer_name


class UnknownVariableError(LaminarError, KeyError):
    """Unit variable name not recognized by either the base or deep state.

    Example:
        raise UnknownVariableError("DeepBurstz")
    """

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"unknown unit variable: {self.name!r}"


class IndexOutOfRangeError(LaminarError, IndexError):
    """Flat unit offset outside ``[0, N)``, or an n-dimensional index with
    the wrong number of dimensions for the layer shape.

    Example:
        raise IndexOutOfRangeError(12, 9)
    """

    def __init__(self, index: Union[int, Sequence[int]], n_units: int):
        super().__init__(f"unit index: {index} out of range, N = {n_units}")
        self.index = index
        self.n_units = n_units


__all__ = [
    "LaminarError",
    "ConfigurationError",
    "BuildError",
    "UnknownVariableError",
    "IndexOutOfRangeError",
]
