"""
Core engine: unit state, layers, projections, delta propagation and the
cycle driver.
"""

from laminar.core.deep_layer import DeepLayer
from laminar.core.network import Network
from laminar.core.neuron_state import DeepInputBuffers, DeepNeuronState, RateNeuronState
from laminar.core.projection import Projection
from laminar.core.propagation import SendStats, delta_sweep
from laminar.core.rate_layer import RateLayer
from laminar.core.shape import Shape, flat_offset, total_element_count
from laminar.core.types import LayerRole, ProjectionType

__all__ = [
    "DeepInputBuffers",
    "DeepLayer",
    "DeepNeuronState",
    "LayerRole",
    "Network",
    "Projection",
    "ProjectionType",
    "RateLayer",
    "RateNeuronState",
    "SendStats",
    "Shape",
    "delta_sweep",
    "flat_offset",
    "total_element_count",
]
