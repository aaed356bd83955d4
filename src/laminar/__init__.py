"""
LAMINAR - deep cortical-thalamic activation propagation

Rate-coded superficial, deep and thalamic-relay layers exchanging activity
over typed projections with a sparse delta-threshold send / un-send
protocol.

Quick Start:
============

    from laminar import Network, LayerRole, ProjectionType

    net = Network("v1_pulvinar")
    v1 = net.add_layer("V1", [4, 4], LayerRole.SUPER)
    v1d = net.add_layer("V1d", [4, 4], LayerRole.DEEP)
    pulv = net.add_layer("Pulv", [4, 4], LayerRole.TRC)
    net.connect_layers(v1, v1d, ProjectionType.BURST_CTXT)
    net.connect_layers(v1, pulv, ProjectionType.BURST_TRC)
    net.connect_layers(v1d, pulv, ProjectionType.STANDARD)
    net.connect_layers(v1d, v1, ProjectionType.DEEP_ATTN)
    net.build()
    net.init_acts()
    net.apply_ext("V1", pattern)
    for _ in range(100):
        net.cycle()

Internal code should use explicit imports:

    from laminar.core.deep_layer import DeepLayer
    from laminar.core.propagation import delta_sweep
"""

__version__ = "0.1.0"

from laminar.config import LayerConfig, ProjectionConfig
from laminar.core import (
    DeepLayer,
    LayerRole,
    Network,
    Projection,
    ProjectionType,
    RateLayer,
    Shape,
)
from laminar.errors import (
    BuildError,
    ConfigurationError,
    IndexOutOfRangeError,
    LaminarError,
    UnknownVariableError,
)

__all__ = [
    "__version__",
    "BuildError",
    "ConfigurationError",
    "DeepLayer",
    "IndexOutOfRangeError",
    "LaminarError",
    "LayerConfig",
    "LayerRole",
    "Network",
    "Projection",
    "ProjectionConfig",
    "ProjectionType",
    "RateLayer",
    "Shape",
    "UnknownVariableError",
]
