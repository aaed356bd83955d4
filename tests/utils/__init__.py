"""Test utilities package for Laminar tests."""

from .builders import (
    PAIR_ROLES,
    build_pair,
    make_layer_config,
    set_acts,
    set_bursts,
    sweep_only,
    unit_weights,
)

__all__ = [
    "PAIR_ROLES",
    "build_pair",
    "make_layer_config",
    "set_acts",
    "set_bursts",
    "sweep_only",
    "unit_weights",
]
