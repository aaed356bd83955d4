"""
Deep Layer - superficial, deep and thalamic-relay roles over a rate-coded base.

A DeepLayer wraps a RateLayer (composition, not inheritance) and adds the
extended unit state of the cortical-thalamic loop:

    SUPER ──BURST_TRC──▶ TRC ◀──STANDARD── DEEP
      │ ▲                                  ▲ │
      │ └────────────DEEP_ATTN─────────────┘ │
      └──────────────BURST_CTXT──────────────┘

Per cycle (driven by Network):
1. send_ge_delta(): activation sweep over STANDARD / DEEP_ATTN projections
2. send_trc_burst_ge_delta(): burst sweep over BURST_TRC projections
3. integrate_inputs(): merge this cycle's received deltas
4. compute_acts(quarter): base rate code, then the role hooks
   (TRC outcome activation, attention, burst)

Per burst quarter end: burst_prev snapshot, send_ctxt_ge() from bursting
SUPER or DEEP layers and ctxt_fm_ge() in DEEP layers.

Unit variables resolve against the base layer first and only then against
the deep state, so a name known to both always reads the base value.

Author: Laminar Project
Date: October 2026
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import torch
import torch.nn as nn

from laminar.config.layer_config import LayerConfig
from laminar.core.neuron_state import DeepInputBuffers, DeepNeuronState
from laminar.core.propagation import (
    SendStats,
    send_act_deltas,
    send_burst_deltas,
    send_ctxt,
)
from laminar.core.rate_layer import RateLayer
from laminar.core.shape import Shape
from laminar.core.types import LayerRole
from laminar.errors import IndexOutOfRangeError, UnknownVariableError
from laminar.mixins import DiagnosticsMixin

logger = logging.getLogger(__name__)


class DeepLayer(DiagnosticsMixin, nn.Module):
    """Rate-coded layer with deep burst, context, TRC and attention state.

    Args:
        name: Layer name, unique within a network
        shape: Unit layout (sequence of dims or a Shape)
        role: SUPER, DEEP or TRC
        config: Layer parameters; role decides which bundles are used

    Example:
        >>> v1 = DeepLayer("V1", [2, 3], LayerRole.SUPER)
        >>> v1.build()
        >>> v1.init_acts()
        >>> v1.variable_names()[:2]
        ('act', 'act_sent')
    """

    def __init__(
        self,
        name: str,
        shape: Union[Sequence[int], Shape],
        role: LayerRole = LayerRole.SUPER,
        config: Optional[LayerConfig] = None,
    ):
        super().__init__()
        if not isinstance(shape, Shape):
            shape = Shape(shape)
        self.role = role
        self.config = config or LayerConfig()
        self.base = RateLayer(name, shape, self.config)

        self.neurons = DeepNeuronState()
        self.inputs = DeepInputBuffers()

        self.act_stats = SendStats()
        self.burst_stats = SendStats()
        self.ctxt_sends = 0

    def as_rate(self) -> RateLayer:
        """The wrapped base rate-coded layer."""
        return self.base

    @property
    def name(self) -> str:
        return self.base.name

    @property
    def shape(self) -> Shape:
        return self.base.shape

    @property
    def n_units(self) -> int:
        return self.base.n_units

    @property
    def is_built(self) -> bool:
        return self.base.is_built

    @property
    def send_projections(self) -> List[Any]:
        return self.base.send_projections

    @property
    def recv_projections(self) -> List[Any]:
        return self.base.recv_projections

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def build(self) -> None:
        """Build the base layer, then allocate the deep unit state.

        Raises:
            BuildError: Propagated unchanged from the base build; deep state
                is left unallocated.
        """
        self.base.build()
        n = self.n_units
        device = self.config.get_torch_device()
        dtype = self.config.get_torch_dtype()
        self.neurons.allocate(n, device=device, dtype=dtype)
        self.inputs.allocate(n, device=device, dtype=dtype)
        logger.debug("built %s layer %s with deep state for %d units", self.role.value, self.name, n)

    def init_acts(self) -> None:
        """Full reset: base state, every deep variable and input buffer."""
        self.base.init_acts()
        self.neurons.reset_all()
        self.inputs.reset_all()
        self.act_stats = SendStats()
        self.burst_stats = SendStats()
        self.ctxt_sends = 0

    def decay_state(self, decay: float) -> None:
        """Base partial decay, then zero burst_sent only."""
        self.base.decay_state(decay)
        self.neurons.reset_transient()

    # =========================================================================
    # DELTA PROPAGATION
    # =========================================================================

    def clear_inputs(self) -> None:
        """Zero this cycle's receive buffers before any layer sends."""
        self.base.clear_ge_inc()
        self.inputs.attn_ge_inc.zero_()
        self.inputs.trc_burst_ge_inc.zero_()

    def send_ge_delta(self) -> SendStats:
        """Send act changes to STANDARD (ge) or DEEP_ATTN (attn_ge) receivers."""
        self.act_stats = send_act_deltas(self)
        return self.act_stats

    def send_trc_burst_ge_delta(self) -> SendStats:
        """Send burst changes over BURST_TRC projections."""
        self.burst_stats = send_burst_deltas(self)
        return self.burst_stats

    def integrate_inputs(self) -> None:
        """Merge received deltas into the integrated inputs."""
        self.base.integrate_ge()
        self.neurons.attn_ge.add_(self.inputs.attn_ge_inc)
        self.neurons.trc_burst_ge.add_(self.inputs.trc_burst_ge_inc)

    def clear_ctxt_ge(self) -> None:
        self.inputs.ctxt_ge.zero_()

    def send_ctxt_ge(self) -> int:
        """Send absolute burst over BURST_CTXT projections (burst quarter end)."""
        self.ctxt_sends = send_ctxt(self)
        return self.ctxt_sends

    def ctxt_fm_ge(self) -> None:
        """Integrate context from this quarter's context input."""
        fm_prv = self.config.ctxt.fm_prv
        ctx = self.neurons.context
        ctx.copy_(fm_prv * ctx + (1.0 - fm_prv) * self.inputs.ctxt_ge)

    # =========================================================================
    # ROLE COMPUTATIONS
    # =========================================================================

    def compute_acts(self, quarter: int) -> None:
        """Base activation followed by the hooks for this layer's role."""
        self.base.compute_acts()
        if self.role is LayerRole.TRC:
            self.compute_trc_act(quarter)
        elif self.role is LayerRole.SUPER:
            self.compute_attn()
        self.compute_burst(quarter)

    def compute_trc_act(self, quarter: int) -> None:
        """In burst quarters, drive act from thalamic burst input (outcome)."""
        trc = self.config.trc
        if not trc.is_burst_quarter(quarter) or self.base.ext is not None:
            return
        drive = self.neurons.trc_burst_ge
        if trc.binarize:
            act = torch.where(
                drive >= trc.bin_thr,
                torch.full_like(drive, trc.bin_on),
                torch.full_like(drive, trc.bin_off),
            )
        else:
            act = torch.clamp(drive, 0.0, 1.0)
        self.base.state.act.copy_(act)

    def compute_attn(self) -> None:
        """Save act as act_no_attn and scale act by the attentional gain."""
        nrn = self.neurons
        act = self.base.state.act
        nrn.act_no_attn.copy_(act)

        attn_p = self.config.attn
        if not attn_p.on:
            nrn.learn_mod.fill_(1.0)
            nrn.attn.fill_(1.0)
            return

        attn_max = float(nrn.attn_ge.max())
        if attn_max < attn_p.thr or attn_max <= 0.0:
            nrn.learn_mod.fill_(1.0)
        else:
            nrn.learn_mod.copy_(nrn.attn_ge / attn_max)
        nrn.attn.copy_(attn_p.min + attn_p.range * nrn.learn_mod)
        act.mul_(nrn.attn)

    def compute_burst(self, quarter: int) -> None:
        """Thresholded act during burst quarters, zero otherwise."""
        burst_p = self.config.burst
        burst = self.neurons.burst
        if self.role is LayerRole.TRC or not burst_p.is_burst_quarter(quarter):
            burst.zero_()
            return
        act = self.base.state.act
        thr = torch.clamp(burst_p.thr_rel * self.base.pool_max(act), min=burst_p.thr_abs)
        burst.copy_(torch.where(act > thr, act, torch.zeros_like(act)))

    def quarter_final(self, quarter: int) -> None:
        """Snapshot burst at the end of a burst quarter."""
        if self.config.burst.is_burst_quarter(quarter):
            self.neurons.burst_prev.copy_(self.neurons.burst)

    # =========================================================================
    # UNIT VARIABLES
    # =========================================================================

    @staticmethod
    def variable_names() -> Tuple[str, ...]:
        """Base variables followed by deep variables; same for every role."""
        return RateLayer.VARIABLES + DeepNeuronState.VARIABLES

    def values_for_variable(self, name: str) -> torch.Tensor:
        """Copy of a variable across all units (empty before build).

        Raises:
            UnknownVariableError: Name unknown to both base and deep state
        """
        if self.base.has_variable(name):
            return self.base.values_for_variable(name)
        return self.neurons.values_by_name(name)

    def value_at_index(self, name: str, index: Sequence[int]) -> float:
        """Value of a variable on the unit at an n-dimensional index.

        Raises:
            UnknownVariableError: Name unknown to both base and deep state
            IndexOutOfRangeError: Wrong number of index dims, or flat offset
                outside [0, N) (N is 0 before build)
        """
        if self.base.has_variable(name):
            return self.base.value_at_index(name, index)
        if name not in DeepNeuronState.VARIABLES:
            raise UnknownVariableError(name)
        return self._deep_value(name, self.base.flat_index(index))

    def value_at_index_1d(self, name: str, idx: int) -> float:
        """Value of a variable on the unit at a flat index."""
        if self.base.has_variable(name):
            return self.base.value_at_index_1d(name, idx)
        return self._deep_value(name, idx)

    def _deep_value(self, name: str, idx: int) -> float:
        if name not in DeepNeuronState.VARIABLES:
            raise UnknownVariableError(name)
        n = len(self.neurons)
        if idx < 0 or idx >= n:
            raise IndexOutOfRangeError(idx, n)
        return self.neurons.value_by_name(name, idx)

    # =========================================================================
    # DIAGNOSTICS
    # =========================================================================

    def get_diagnostics(self) -> Dict[str, float]:
        """Activity, input and last-cycle send statistics."""
        diag: Dict[str, float] = {}
        diag.update(self.activity_diagnostics(self.base.state.act, prefix="act"))
        diag.update(self.activity_diagnostics(self.neurons.burst, prefix="burst"))
        diag.update(self.input_diagnostics(self.base.state.ge_raw, prefix="ge_raw"))
        if self.role is LayerRole.SUPER:
            diag.update(self.input_diagnostics(self.neurons.attn_ge, prefix="attn_ge"))
        elif self.role is LayerRole.TRC:
            diag.update(self.input_diagnostics(self.neurons.trc_burst_ge, prefix="trc_burst_ge"))
        else:
            diag.update(self.input_diagnostics(self.neurons.context, prefix="context"))
        diag.update(self.send_diagnostics(self.act_stats, n_units=self.n_units, prefix="act"))
        diag.update(self.send_diagnostics(self.burst_stats, n_units=self.n_units, prefix="burst"))
        diag["ctxt_sends"] = float(self.ctxt_sends)
        return diag

    def __repr__(self) -> str:
        return f"DeepLayer({self.name!r}, {self.role.value}, shape={self.shape.dims})"
