"""
Network - cycle driver for deep layers and their projections.

One cycle is a complete pass of every phase across every layer before the
next phase starts:

    propagate:  clear_inputs → send_ge_delta → send_trc_burst_ge_delta
                → integrate_inputs
    then:       compute_acts

Receive buffers are only added to while layers send, and only read once
all layers have sent. After ``cycles_per_quarter`` cycles the quarter ends
(``quarter_final``): in burst quarters layers snapshot burst_prev, bursting
layers send context over BURST_CTXT and DEEP layers integrate it.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Union

import torch
import torch.nn as nn

from laminar.config.layer_config import QUARTERS_PER_TRIAL, LayerConfig, ProjectionConfig
from laminar.core.deep_layer import DeepLayer
from laminar.core.projection import Projection
from laminar.core.shape import Shape
from laminar.core.types import EXPECTED_ROLES, LayerRole, ProjectionType
from laminar.errors import BuildError
from laminar.mixins import DiagnosticsMixin

logger = logging.getLogger(__name__)


class Network(DiagnosticsMixin, nn.Module):
    """Container and cycle driver for deep layers.

    Args:
        name: Network name (used in error messages)
        cycles_per_quarter: Cycles per quarter; a trial has 4 quarters

    Example:
        >>> net = Network("loop")
        >>> v1 = net.add_layer("V1", [4, 4], LayerRole.SUPER)
        >>> p = net.add_layer("Pulv", [4, 4], LayerRole.TRC)
        >>> net.connect_layers(v1, p, ProjectionType.BURST_TRC)
        >>> net.build()
        >>> net.init_acts()
        >>> for _ in range(100):
        ...     net.cycle()
    """

    def __init__(self, name: str = "net", cycles_per_quarter: int = 25):
        super().__init__()
        if cycles_per_quarter <= 0:
            raise ValueError(f"cycles_per_quarter must be positive, got {cycles_per_quarter}")
        self.name = name
        self.cycles_per_quarter = cycles_per_quarter
        self.layers = nn.ModuleDict()
        self.projections = nn.ModuleList()
        self.is_built = False

        self.cycle_count = 0
        self.quarter = 0

    # =========================================================================
    # ASSEMBLY
    # =========================================================================

    def add_layer(
        self,
        name: str,
        shape: Union[Sequence[int], Shape],
        role: LayerRole,
        config: Optional[LayerConfig] = None,
    ) -> DeepLayer:
        if name in self.layers:
            raise ValueError(f"layer {name!r} already exists in network {self.name!r}")
        layer = DeepLayer(name, shape, role, config)
        self.layers[name] = layer
        self.is_built = False
        return layer

    def layer_by_name(self, name: str) -> DeepLayer:
        if name not in self.layers:
            raise KeyError(f"no layer named {name!r} in network {self.name!r}")
        return self.layers[name]

    def connect_layers(
        self,
        send: DeepLayer,
        recv: DeepLayer,
        ptype: ProjectionType = ProjectionType.STANDARD,
        config: Optional[ProjectionConfig] = None,
    ) -> Projection:
        """Create a projection and register it on both endpoints."""
        pj = Projection(send, recv, ptype, config)
        send.send_projections.append(pj)
        recv.recv_projections.append(pj)
        self.projections.append(pj)
        self.is_built = False
        return pj

    def build(self) -> None:
        """Build every layer (and through them every projection).

        Raises:
            BuildError: From the first layer that fails; the network stays
                unbuilt and refuses to cycle.
        """
        self.is_built = False
        for pj in self.projections:
            self._check_roles(pj)
        for layer in self.layers.values():
            layer.build()
        self.is_built = True
        logger.info(
            "built network %s: %d layers, %d projections",
            self.name, len(self.layers), len(self.projections),
        )

    @staticmethod
    def _check_roles(pj: Projection) -> None:
        expected = EXPECTED_ROLES.get(pj.channel_type)
        if expected is None:
            return
        send_roles, recv_roles = expected
        if pj.send.role not in send_roles or pj.recv.role not in recv_roles:
            logger.warning(
                "projection %s carries %s from a %s layer to a %s layer",
                pj.name, pj.channel_type.value, pj.send.role.value, pj.recv.role.value,
            )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def _require_built(self) -> None:
        if not self.is_built:
            raise BuildError(self.name, "network must be built before it can run")

    def init_acts(self) -> None:
        """Full reset of every layer and of the trial clock."""
        self._require_built()
        for layer in self.layers.values():
            layer.init_acts()
        self.new_trial()

    def decay_state(self, decay: float) -> None:
        """Partial decay of every layer between trials."""
        self._require_built()
        for layer in self.layers.values():
            layer.decay_state(decay)

    def new_trial(self) -> None:
        self.cycle_count = 0
        self.quarter = 0

    def apply_ext(self, name: str, values: torch.Tensor) -> None:
        """Clamp a layer's activations to external values."""
        self._require_built()
        self.layer_by_name(name).as_rate().apply_ext(values)

    # =========================================================================
    # CYCLE
    # =========================================================================

    def propagate(self) -> None:
        """Send phase of a cycle: both sweeps, then merge received inputs."""
        self._require_built()
        layers = list(self.layers.values())
        for layer in layers:
            layer.clear_inputs()
        for layer in layers:
            layer.send_ge_delta()
        for layer in layers:
            layer.send_trc_burst_ge_delta()
        for layer in layers:
            layer.integrate_inputs()

    def cycle(self) -> None:
        """Run one cycle over all layers; ends the quarter when it is due."""
        self.propagate()
        for layer in self.layers.values():
            layer.compute_acts(self.quarter)

        self.cycle_count += 1
        if self.cycle_count % self.cycles_per_quarter == 0:
            self.quarter_final()

    def quarter_final(self) -> None:
        """End the current quarter: burst snapshot and context update."""
        self._require_built()
        layers = list(self.layers.values())
        for layer in layers:
            layer.quarter_final(self.quarter)

        senders = self._context_senders()
        if senders:
            self._update_context(senders)

        self.quarter = (self.quarter + 1) % QUARTERS_PER_TRIAL

    def _context_senders(self) -> List[DeepLayer]:
        """Bursting layers (SUPER or DEEP) with an enabled BURST_CTXT projection."""
        return [
            layer
            for layer in self.layers.values()
            if layer.role is not LayerRole.TRC
            and layer.config.burst.is_burst_quarter(self.quarter)
            and any(
                pj.channel_type is ProjectionType.BURST_CTXT and not pj.is_off()
                for pj in layer.send_projections
            )
        ]

    def _update_context(self, senders: List[DeepLayer]) -> None:
        layers = list(self.layers.values())
        for layer in layers:
            layer.clear_ctxt_ge()
        for layer in senders:
            layer.send_ctxt_ge()
        for layer in layers:
            if layer.role is LayerRole.DEEP:
                layer.ctxt_fm_ge()

    def run_quarter(self) -> None:
        """Cycle until the current quarter ends."""
        start = self.quarter
        while self.quarter == start:
            self.cycle()

    # =========================================================================
    # DIAGNOSTICS
    # =========================================================================

    def get_diagnostics(self) -> Dict[str, float]:
        """Per-layer diagnostics prefixed by layer name, plus weight stats."""
        self._require_built()
        diag: Dict[str, float] = {"cycle": float(self.cycle_count), "quarter": float(self.quarter)}
        for name, layer in self.layers.items():
            for key, value in layer.get_diagnostics().items():
                diag[f"{name}/{key}"] = value
        for pj in self.projections:
            diag.update(self.weight_diagnostics(pj.weights, prefix=pj.name))
        return diag

    def __repr__(self) -> str:
        return f"Network({self.name!r}, layers={list(self.layers.keys())})"
