"""
Layer roles and projection channel types.

Both sets are closed: the propagator routes on ProjectionType with explicit
per-sweep tables, so a new member has to be placed in those tables before
it carries anything.
"""

from __future__ import annotations

from enum import Enum


class LayerRole(Enum):
    """Functional role of a layer in the cortical-thalamic loop.

    SUPER: Superficial-layer neurons. Compute burst as a thresholded version
        of activation and send it to TRC (plus-phase outcome) and Deep
        (temporal context) layers. Receive attention from Deep.
    DEEP: Layer 6 corticothalamic neurons. Integrate context from Super
        bursts; drive attention in Super and predictions in TRC via
        standard projections.
    TRC: Thalamic relay cells (Pulvinar). Reflect Deep-driven predictions,
        then Super-driven outcomes during burst quarters.
    """

    SUPER = "super"
    DEEP = "deep"
    TRC = "trc"


class ProjectionType(Enum):
    """Signal channel carried by a projection.

    STANDARD: excitatory conductance from sender act (activation sweep).
    BURST_CTXT: sender burst into the receiver's context input, sent once
        per burst quarter.
    BURST_TRC: sender burst into the receiver's thalamic drive (burst sweep).
    DEEP_ATTN: sender act into the receiver's attention conductance (activation sweep).
    """

    STANDARD = "standard"
    BURST_CTXT = "burst_ctxt"
    BURST_TRC = "burst_trc"
    DEEP_ATTN = "deep_attn"


# Roles each projection type is expected to connect (sender, receiver).
# Not enforced; Network reports mismatches when it builds.
EXPECTED_ROLES = {
    ProjectionType.BURST_CTXT: (frozenset({LayerRole.SUPER, LayerRole.DEEP}), frozenset({LayerRole.DEEP})),
    ProjectionType.BURST_TRC: (frozenset({LayerRole.SUPER}), frozenset({LayerRole.TRC})),
    ProjectionType.DEEP_ATTN: (frozenset({LayerRole.DEEP}), frozenset({LayerRole.SUPER})),
}


__all__ = [
    "LayerRole",
    "ProjectionType",
    "EXPECTED_ROLES",
]
