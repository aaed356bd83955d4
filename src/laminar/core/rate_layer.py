"""
Base rate-coded layer.

A RateLayer owns the basic unit state (act, act_sent, ge, ge_raw, ge_inc),
the layer shape and the lists of sending and receiving projections. It
builds the receiving projections, computes activations with a noise-free
XX1 rate code, and exposes its variables by name.

Deep layers wrap a RateLayer (see deep_layer.DeepLayer) rather than derive
from it; the deep layer consults the base first for every variable lookup.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

import torch
import torch.nn as nn

from laminar.config.layer_config import LayerConfig
from laminar.core.neuron_state import RateNeuronState
from laminar.core.shape import Shape
from laminar.errors import BuildError, IndexOutOfRangeError, UnknownVariableError

if TYPE_CHECKING:
    from laminar.core.projection import Projection

logger = logging.getLogger(__name__)


class RateLayer(nn.Module):
    """Base rate-coded layer state and lifecycle.

    Args:
        name: Layer name, unique within a network
        shape: Unit layout; 4D shapes are (pools_y, pools_x, units_y, units_x)
        config: Layer parameters (only act and inhib are read here)
    """

    VARIABLES = RateNeuronState.VARIABLES

    def __init__(self, name: str, shape: Shape, config: Optional[LayerConfig] = None):
        super().__init__()
        self.name = name
        self.shape = shape
        self.config = config or LayerConfig()

        self.state = RateNeuronState()
        self.send_projections: List[Projection] = []
        self.recv_projections: List[Projection] = []

        # Clamped external input; replaces computed act when set
        self.ext: Optional[torch.Tensor] = None
        self.n_pools = 0
        self.is_built = False

    @property
    def n_units(self) -> int:
        return len(self.shape)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def build(self) -> None:
        """Allocate unit state and build receiving projections.

        Pooling must be configured before this point: pools are laid out
        from the 4D shape here.

        Raises:
            BuildError: Empty shape, pooling on a non-4D shape, or a
                receiving projection that does not end at this layer.
        """
        n = self.n_units
        if n <= 0:
            raise BuildError(self.name, f"shape {self.shape.dims} has no units")

        if self.config.inhib.pool_on:
            if self.shape.num_dims != 4:
                raise BuildError(
                    self.name,
                    f"inhib.pool_on requires a 4D shape, got {self.shape.dims}",
                )
            self.n_pools = self.shape.dims[0] * self.shape.dims[1]
        else:
            self.n_pools = 0

        for pj in self.recv_projections:
            if pj.recv.as_rate() is not self:
                raise BuildError(
                    self.name,
                    f"receiving projection {pj.name} ends at {pj.recv.name}",
                )
            pj.build()

        self.state.allocate(
            n,
            device=self.config.get_torch_device(),
            dtype=self.config.get_torch_dtype(),
        )
        self.ext = None
        self.is_built = True
        logger.debug(
            "built layer %s: %d units, %d pools, %d receiving projections",
            self.name, n, self.n_pools, len(self.recv_projections),
        )

    def init_acts(self) -> None:
        """Zero all unit state and clear external input."""
        self.state.reset_all()
        self.ext = None

    def decay_state(self, decay: float) -> None:
        """Decay activation and integrated conductance toward zero.

        act_sent and ge_raw are left alone: ge_raw is the weighted sum of
        what senders last sent, like attn_ge on the deep side, so a later
        un-send still retracts it to exactly zero.
        """
        st = self.state
        keep = 1.0 - decay
        st.act.mul_(keep)
        st.ge.mul_(keep)

    # =========================================================================
    # CYCLE
    # =========================================================================

    def clear_ge_inc(self) -> None:
        self.state.ge_inc.zero_()

    def integrate_ge(self) -> None:
        """Merge this cycle's standard deltas into the integrated input."""
        self.state.ge_raw.add_(self.state.ge_inc)

    def apply_ext(self, values: torch.Tensor) -> None:
        """Clamp activations to external values from the next compute on."""
        self.ext = torch.as_tensor(
            values, dtype=self.state.act.dtype, device=self.state.act.device
        ).reshape(-1)
        if self.ext.numel() != self.n_units:
            raise ValueError(
                f"ext has {self.ext.numel()} values, layer {self.name} has {self.n_units} units"
            )

    def clear_ext(self) -> None:
        self.ext = None

    def compute_acts(self) -> None:
        """Integrate ge toward ge_raw and compute act with the XX1 rate code."""
        st = self.state
        act_p = self.config.act
        if self.ext is not None:
            st.act.copy_(self.ext)
            return
        st.ge.add_(act_p.dt_integ * (st.ge_raw - st.ge))
        x = act_p.gain * torch.clamp(st.ge - act_p.thr, min=0.0)
        st.act.copy_(x / (x + 1.0))

    def pool_max(self, values: torch.Tensor) -> torch.Tensor:
        """Per-unit max of values over the unit's pool (or the whole layer)."""
        if self.n_pools > 0:
            pooled = values.reshape(self.n_pools, -1)
            return pooled.max(dim=1, keepdim=True).values.expand_as(pooled).reshape(-1)
        return values.max().expand_as(values)

    # =========================================================================
    # UNIT VARIABLES
    # =========================================================================

    @classmethod
    def has_variable(cls, name: str) -> bool:
        return name in cls.VARIABLES

    def values_for_variable(self, name: str) -> torch.Tensor:
        """Copy of a variable across all units; empty before build."""
        return self.state.values_by_name(name)

    def flat_index(self, index: Sequence[int]) -> int:
        """Flat offset of an n-dimensional unit index.

        Raises:
            IndexOutOfRangeError: index does not have one entry per dimension
        """
        if len(index) != self.shape.num_dims:
            raise IndexOutOfRangeError(list(index), self.n_units)
        return self.shape.offset(index)

    def value_at_index(self, name: str, index: Sequence[int]) -> float:
        if not self.has_variable(name):
            raise UnknownVariableError(name)
        return self.value_at_index_1d(name, self.flat_index(index))

    def value_at_index_1d(self, name: str, idx: int) -> float:
        if not self.has_variable(name):
            raise UnknownVariableError(name)
        # allocated length, so an unbuilt layer reports N = 0
        n = len(self.state)
        if idx < 0 or idx >= n:
            raise IndexOutOfRangeError(idx, n)
        return self.state.value_by_name(name, idx)

    def __repr__(self) -> str:
        return f"RateLayer({self.name!r}, shape={self.shape.dims})"
