"""
Sparse delta-threshold signal propagation.

Rate-coded activity sits near zero most of the time with brief large
excursions, so layers send *changes* instead of absolute values every
cycle. For each unit, with value ``v`` and last-sent shadow ``sent``:

- ``v > send``: if ``|v - sent| > delta``, send ``v - sent`` and set
  ``sent = v``; otherwise do nothing.
- ``v <= send`` and ``sent > send``: un-send. The unit dropped below the
  send threshold, so ``-sent`` is sent to retract everything it had
  contributed, and ``sent = 0``.
- otherwise nothing happens.

Because every transmitted quantity is a difference against ``sent``, the
sum of everything a unit has sent always equals its current ``sent``
value. A receiver's integrated input is therefore exactly what it would be
if absolute values had been sent every cycle (up to the delta threshold
while the unit stays above ``send``), and exactly zero from a unit that
has fallen silent.

Two sweeps run each cycle over independent shadows:

- activation sweep: ``act`` / ``act_sent`` over STANDARD and DEEP_ATTN
  projections
- burst sweep: ``burst`` / ``burst_sent`` over BURST_TRC projections only

Units are independent within a sweep, so each sweep is evaluated with
masks over the whole layer and each projection primitive is called once
with the indices of the units that fire. A projection is not called at
all when no unit fires, when it is off, or when its channel type is not
routed by the sweep.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterable, Optional

import torch

from laminar.config.layer_config import OptThreshParams
from laminar.core.projection import Projection
from laminar.core.types import ProjectionType

if TYPE_CHECKING:
    from laminar.core.deep_layer import DeepLayer

SendPrimitive = Callable[[Projection, torch.Tensor, torch.Tensor], None]
RouteTable = Dict[ProjectionType, Optional[SendPrimitive]]


# Which primitive each channel type receives in each sweep (None = skipped)
ACT_SWEEP_ROUTES: RouteTable = {
    ProjectionType.STANDARD: lambda pj, si, d: pj.send_ge_delta(si, d),
    ProjectionType.DEEP_ATTN: lambda pj, si, d: pj.send_attn_ge_delta(si, d),
    ProjectionType.BURST_CTXT: None,
    ProjectionType.BURST_TRC: None,
}

BURST_SWEEP_ROUTES: RouteTable = {
    ProjectionType.STANDARD: None,
    ProjectionType.DEEP_ATTN: None,
    ProjectionType.BURST_CTXT: None,
    ProjectionType.BURST_TRC: lambda pj, si, d: pj.send_trc_burst_ge_delta(si, d),
}


def _check_routes(name: str, routes: RouteTable) -> None:
    missing = set(ProjectionType) - set(routes)
    if missing:
        raise RuntimeError(
            f"{name} does not route projection types: {sorted(m.value for m in missing)}"
        )


_check_routes("ACT_SWEEP_ROUTES", ACT_SWEEP_ROUTES)
_check_routes("BURST_SWEEP_ROUTES", BURST_SWEEP_ROUTES)


@dataclass
class SendStats:
    """Number of units that sent or un-sent in one sweep."""

    sends: int = 0
    unsends: int = 0

    @property
    def events(self) -> int:
        return self.sends + self.unsends


def delta_sweep(
    values: torch.Tensor,
    sent: torch.Tensor,
    opt_thresh: OptThreshParams,
    projections: Iterable[Projection],
    routes: RouteTable,
) -> SendStats:
    """Send changes in values since last sent over routed projections.

    Args:
        values: Current per-unit values (act or burst)
        sent: Last-sent shadow of values; updated in place
        opt_thresh: Send and delta thresholds
        projections: Sending projections of the layer
        routes: Primitive per projection type for this sweep

    Returns:
        Counts of sends and un-sends
    """
    above = values > opt_thresh.send
    delta = values - sent
    send_mask = above & (delta.abs() > opt_thresh.delta)
    unsend_mask = ~above & (sent > opt_thresh.send)

    fire = send_mask | unsend_mask
    idx = fire.nonzero(as_tuple=True)[0]
    if idx.numel() == 0:
        return SendStats()

    # un-send the last above-threshold value to get back to 0
    deltas = torch.where(send_mask, delta, -sent)[idx]
    for pj in projections:
        if pj.is_off():
            continue
        primitive = routes[pj.channel_type]
        if primitive is None:
            continue
        primitive(pj, idx, deltas)

    sent.copy_(torch.where(send_mask, values, sent))
    sent.masked_fill_(unsend_mask, 0.0)
    return SendStats(sends=int(send_mask.sum()), unsends=int(unsend_mask.sum()))


def send_act_deltas(layer: DeepLayer) -> SendStats:
    """Activation sweep: act deltas over STANDARD and DEEP_ATTN projections."""
    base = layer.as_rate()
    return delta_sweep(
        base.state.act,
        base.state.act_sent,
        base.config.act.opt_thresh,
        base.send_projections,
        ACT_SWEEP_ROUTES,
    )


def send_burst_deltas(layer: DeepLayer) -> SendStats:
    """Burst sweep: burst deltas over BURST_TRC projections."""
    base = layer.as_rate()
    return delta_sweep(
        layer.neurons.burst,
        layer.neurons.burst_sent,
        base.config.act.opt_thresh,
        base.send_projections,
        BURST_SWEEP_ROUTES,
    )


def send_ctxt(layer: DeepLayer) -> int:
    """Send absolute burst over BURST_CTXT projections.

    Context is rebuilt from scratch each burst quarter, so absolute values
    are sent (no shadow) for every unit above the send threshold.

    Returns:
        Number of units that sent
    """
    base = layer.as_rate()
    burst = layer.neurons.burst
    idx = (burst > base.config.act.opt_thresh.send).nonzero(as_tuple=True)[0]
    if idx.numel() == 0:
        return 0
    values = burst[idx]
    for pj in base.send_projections:
        if pj.is_off() or pj.channel_type is not ProjectionType.BURST_CTXT:
            continue
        pj.send_ctxt_ge(idx, values)
    return int(idx.numel())


__all__ = [
    "ACT_SWEEP_ROUTES",
    "BURST_SWEEP_ROUTES",
    "SendStats",
    "delta_sweep",
    "send_act_deltas",
    "send_burst_deltas",
    "send_ctxt",
]
