"""
Typed projections between deep layers.

A Projection is a directed, typed edge from a sending layer to a receiving
layer. It owns only its weight matrix; the per-channel send primitives add
``weights[:, si] @ delta`` into the matching accumulator of the receiver:

================  ==========================  ==============================
channel           primitive                   receiver accumulator
================  ==========================  ==============================
STANDARD          send_ge_delta               base ge_inc
DEEP_ATTN         send_attn_ge_delta          inputs.attn_ge_inc
BURST_TRC         send_trc_burst_ge_delta     inputs.trc_burst_ge_inc
BURST_CTXT        send_ctxt_ge                inputs.ctxt_ge (absolute)
================  ==========================  ==============================

Topology is fixed once the network is assembled. At runtime only the off
flag and the channel type are consulted.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence, Union

import torch
import torch.nn as nn

from laminar.components.synapses import WeightInitializer
from laminar.config.layer_config import ProjectionConfig
from laminar.core.types import ProjectionType

if TYPE_CHECKING:
    from laminar.core.deep_layer import DeepLayer

logger = logging.getLogger(__name__)

SenderIndex = Union[int, Sequence[int], torch.Tensor]
DeltaValue = Union[float, Sequence[float], torch.Tensor]


class Projection(nn.Module):
    """Directed typed edge between two deep layers.

    Args:
        send: Sending layer
        recv: Receiving layer
        ptype: Channel carried by this projection
        config: Weight initialization parameters
        name: Defaults to "<send>To<recv>"

    Weights are [n_recv, n_send] and are allocated by the receiving layer's
    build.
    """

    def __init__(
        self,
        send: DeepLayer,
        recv: DeepLayer,
        ptype: ProjectionType = ProjectionType.STANDARD,
        config: Optional[ProjectionConfig] = None,
        name: Optional[str] = None,
    ):
        super().__init__()
        # Endpoints belong to the network; keep them out of this module's tree
        object.__setattr__(self, "send", send)
        object.__setattr__(self, "recv", recv)
        self.ptype = ptype
        self.config = config or ProjectionConfig()
        self.name = name or f"{send.name}To{recv.name}"
        self.off = False
        self.register_buffer("weights", None)

    @property
    def channel_type(self) -> ProjectionType:
        return self.ptype

    def is_off(self) -> bool:
        return self.off

    def is_enabled(self) -> bool:
        return not self.off

    def set_off(self, off: bool) -> None:
        self.off = off

    def build(self) -> None:
        """Allocate the weight matrix from both endpoint sizes."""
        generator = None
        if self.config.seed is not None:
            generator = torch.Generator(device=self.config.get_torch_device())
            generator.manual_seed(self.config.seed)
        self.weights = WeightInitializer.uniform(
            n_input=self.send.n_units,
            n_output=self.recv.n_units,
            mean=self.config.wt_mean,
            var=self.config.wt_var,
            device=self.config.get_torch_device(),
            dtype=self.config.get_torch_dtype(),
            generator=generator,
        )
        logger.debug(
            "built projection %s (%s): %d -> %d",
            self.name, self.ptype.value, self.send.n_units, self.recv.n_units,
        )

    # =========================================================================
    # SEND PRIMITIVES
    # =========================================================================

    def _contribution(self, si: SenderIndex, delta: DeltaValue) -> torch.Tensor:
        w = self.weights
        idx = torch.as_tensor(si, dtype=torch.long, device=w.device).reshape(-1)
        d = torch.as_tensor(delta, dtype=w.dtype, device=w.device).reshape(-1)
        return w[:, idx] @ d

    def send_ge_delta(self, si: SenderIndex, delta: DeltaValue) -> None:
        """Add weighted activation delta to the receiver's excitatory input."""
        self.recv.as_rate().state.ge_inc.add_(self._contribution(si, delta))

    def send_attn_ge_delta(self, si: SenderIndex, delta: DeltaValue) -> None:
        """Add weighted activation delta to the receiver's attention input."""
        self.recv.inputs.attn_ge_inc.add_(self._contribution(si, delta))

    def send_trc_burst_ge_delta(self, si: SenderIndex, delta: DeltaValue) -> None:
        """Add weighted burst delta to the receiver's thalamic drive."""
        self.recv.inputs.trc_burst_ge_inc.add_(self._contribution(si, delta))

    def send_ctxt_ge(self, si: SenderIndex, value: DeltaValue) -> None:
        """Add weighted absolute burst to the receiver's context input."""
        self.recv.inputs.ctxt_ge.add_(self._contribution(si, value))

    def __repr__(self) -> str:
        state = "off" if self.off else "on"
        return f"Projection({self.name!r}, {self.ptype.value}, {state})"
