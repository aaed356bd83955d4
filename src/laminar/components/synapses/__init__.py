"""Synaptic components: weight initialization for projections."""

from laminar.components.synapses.weight_init import WeightInitializer

__all__ = ["WeightInitializer"]
