"""
Per-unit state stores for rate-coded and deep layers.

Stores are struct-of-arrays: every variable is a 1-D tensor of length N
(one entry per unit, flat index order of the layer Shape). They are
allocated once at layer build and afterwards only zeroed in place, so
references held by projections and tooling stay valid across resets.

- RateNeuronState: base rate-code unit state (act, act_sent, ge, ...)
- DeepNeuronState: extended deep state (burst, context, attention, ...)
- DeepInputBuffers: per-receiver accumulation buffers for the deep
  channels, written by projections during a sweep and merged after it
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import ClassVar, Dict, Optional, Tuple

import torch

from laminar.errors import UnknownVariableError


class _UnitArrays:
    """Shared allocation, reset and lookup for unit state dataclasses."""

    VARIABLES: ClassVar[Tuple[str, ...]] = ()

    def allocate(
        self,
        n: int,
        device: Optional[torch.device] = None,
        dtype: torch.dtype = torch.float32,
    ) -> None:
        """Create n zero-valued units, replacing any prior storage."""
        for f in fields(self):
            setattr(self, f.name, torch.zeros(n, device=device, dtype=dtype))

    @property
    def is_allocated(self) -> bool:
        return all(getattr(self, f.name) is not None for f in fields(self))

    def reset_all(self) -> None:
        """Zero every variable in place."""
        for f in fields(self):
            t = getattr(self, f.name)
            if t is not None:
                t.zero_()

    def var_by_name(self, name: str) -> torch.Tensor:
        """Whole-layer tensor for a variable (a view, not a copy)."""
        if name not in self.VARIABLES:
            raise UnknownVariableError(name)
        return getattr(self, name)

    def values_by_name(self, name: str) -> torch.Tensor:
        """Copy of a variable across all units (empty before allocation)."""
        t = self.var_by_name(name)
        if t is None:
            return torch.zeros(0)
        return t.detach().clone()

    def value_by_name(self, name: str, ni: int) -> float:
        """Value of a variable on unit ni."""
        return float(self.var_by_name(name)[ni])

    def to_dict(self) -> Dict[str, Optional[torch.Tensor]]:
        """Copy of every variable, keyed by name."""
        out: Dict[str, Optional[torch.Tensor]] = {}
        for name in self.VARIABLES:
            t = getattr(self, name)
            out[name] = None if t is None else t.detach().clone()
        return out

    def __len__(self) -> int:
        first = getattr(self, fields(self)[0].name)
        return 0 if first is None else int(first.numel())


@dataclass
class RateNeuronState(_UnitArrays):
    """Base rate-code unit state.

    act_sent is the delta-send shadow of act: the value of act as of the
    last send or un-send on the standard/attention channel.
    """

    act: Optional[torch.Tensor] = None
    act_sent: Optional[torch.Tensor] = None
    ge: Optional[torch.Tensor] = None
    ge_raw: Optional[torch.Tensor] = None
    ge_inc: Optional[torch.Tensor] = None

    VARIABLES: ClassVar[Tuple[str, ...]] = ("act", "act_sent", "ge", "ge_raw", "ge_inc")


@dataclass
class DeepNeuronState(_UnitArrays):
    """Extended deep unit state.

    Attributes:
        act_no_attn: act before attentional modulation
        burst: thresholded superficial activation (burst quarters only)
        burst_prev: burst at the end of the previous burst quarter
        context: temporally integrated context from superficial bursts
        trc_burst_ge: integrated thalamic drive from BURST_TRC projections
        burst_sent: burst as of the last send/un-send on BURST_TRC.
            Only the delta propagator and the resets write it.
        attn_ge: integrated attention conductance from DEEP_ATTN projections
        attn: attentional gain applied to act
        learn_mod: learning modulation derived from attn_ge
    """

    act_no_attn: Optional[torch.Tensor] = None
    burst: Optional[torch.Tensor] = None
    burst_prev: Optional[torch.Tensor] = None
    context: Optional[torch.Tensor] = None
    trc_burst_ge: Optional[torch.Tensor] = None
    burst_sent: Optional[torch.Tensor] = None
    attn_ge: Optional[torch.Tensor] = None
    attn: Optional[torch.Tensor] = None
    learn_mod: Optional[torch.Tensor] = None

    VARIABLES: ClassVar[Tuple[str, ...]] = (
        "act_no_attn",
        "burst",
        "burst_prev",
        "context",
        "trc_burst_ge",
        "burst_sent",
        "attn_ge",
        "attn",
        "learn_mod",
    )

    def reset_transient(self) -> None:
        """Zero the sent shadows only; every other variable keeps its value."""
        if self.burst_sent is not None:
            self.burst_sent.zero_()


@dataclass
class DeepInputBuffers(_UnitArrays):
    """Receiving-side accumulators for the deep channels.

    attn_ge_inc and trc_burst_ge_inc collect one cycle's deltas and are
    merged into DeepNeuronState after the sweeps. ctxt_ge holds the absolute
    context input of the current burst quarter.
    """

    attn_ge_inc: Optional[torch.Tensor] = None
    trc_burst_ge_inc: Optional[torch.Tensor] = None
    ctxt_ge: Optional[torch.Tensor] = None

    VARIABLES: ClassVar[Tuple[str, ...]] = ("attn_ge_inc", "trc_burst_ge_inc", "ctxt_ge")


__all__ = [
    "RateNeuronState",
    "DeepNeuronState",
    "DeepInputBuffers",
]
