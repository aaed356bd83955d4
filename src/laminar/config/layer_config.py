"""
Layer and Projection Configuration.

Parameter bundles for the base rate-coded layer (activation, send
thresholds, inhibition pooling) and for the deep cortical-thalamic roles:

- DeepBurstParams: burst from superficial activation
- DeepCtxtParams: temporal context integration in deep layers
- DeepTRCParams: thalamic relay outcome activation from burst drive
- DeepAttnParams: attentional gain from deep-to-superficial projections

Defaults follow the deep Leabra conventions: quarters are 0-based, the
burst quarter is the last one (3), and the send thresholds are the
standard rate-code optimization thresholds.

Author: Laminar Project
Date: October 2026
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, Tuple

from laminar.config.base import BaseConfig
from laminar.config.validation import ValidatedConfig
from laminar.errors import ConfigurationError

QUARTERS_PER_TRIAL = 4
DEFAULT_BURST_QUARTERS: Tuple[int, ...] = (3,)


# =============================================================================
# BASE RATE-CODE PARAMETERS
# =============================================================================


@dataclass
class OptThreshParams(ValidatedConfig):
    """Optimization thresholds for sparse delta sending.

    Attributes:
        send: Activation must exceed this to be sent at all. A unit that
            was above it and falls below is un-sent.
        delta: Change since last sent value must exceed this to be sent.
    """

    send: float = 0.1
    delta: float = 0.005

    _validation_rules: ClassVar[Dict[str, Tuple[str, ...]]] = {
        "send": ("non_negative", "finite"),
        "delta": ("non_negative", "finite"),
    }

    def __post_init__(self) -> None:
        self.validate_config()


@dataclass
class ActParams(ValidatedConfig):
    """Rate-code activation function parameters (XX1 without noise).

    act = x / (x + 1) with x = gain * max(ge - thr, 0)
    """

    thr: float = 0.5
    """Net excitatory input at which activation starts rising."""

    gain: float = 100.0
    """Slope of the activation function above threshold."""

    dt_integ: float = 0.7
    """Rate at which ge follows ge_raw each cycle."""

    opt_thresh: OptThreshParams = field(default_factory=OptThreshParams)

    _validation_rules: ClassVar[Dict[str, Tuple[str, ...]]] = {
        "thr": ("non_negative", "finite"),
        "gain": ("positive", "finite"),
        "dt_integ": ("positive", "range(0.0, 1.0)"),
    }

    def __post_init__(self) -> None:
        self.validate_config()


@dataclass
class InhibParams:
    """Inhibition layout. Only pooling is modeled here.

    pool_on requires a 4D layer shape: (pools_y, pools_x, units_y, units_x).
    """

    pool_on: bool = False


# =============================================================================
# DEEP ROLE PARAMETERS
# =============================================================================


@dataclass
class DeepBurstParams(ValidatedConfig):
    """Computing burst from act in superficial layers.

    burst = act where act > max(thr_rel * max_act, thr_abs), else 0, during
    burst quarters. max_act is taken per pool when pooling is on.
    """

    on: bool = True
    burst_quarters: Tuple[int, ...] = DEFAULT_BURST_QUARTERS
    thr_rel: float = 0.1
    thr_abs: float = 0.1

    _validation_rules: ClassVar[Dict[str, Tuple[str, ...]]] = {
        "burst_quarters": ("quarters",),
        "thr_rel": ("unit_interval",),
        "thr_abs": ("unit_interval",),
    }

    def __post_init__(self) -> None:
        self.burst_quarters = tuple(self.burst_quarters)
        self.validate_config()

    def is_burst_quarter(self, quarter: int) -> bool:
        return self.on and quarter in self.burst_quarters


@dataclass
class DeepCtxtParams(ValidatedConfig):
    """Context integration in deep layers.

    context = fm_prv * context + (1 - fm_prv) * ctxt_ge
    """

    fm_prv: float = 0.0

    _validation_rules: ClassVar[Dict[str, Tuple[str, ...]]] = {
        "fm_prv": ("unit_interval",),
    }

    def __post_init__(self) -> None:
        self.validate_config()


@dataclass
class DeepTRCParams(ValidatedConfig):
    """Thalamic relay outcome activation from burst drive (trc_burst_ge).

    Attributes:
        burst_quarters: Quarters in which act is driven by trc_burst_ge
        binarize: Map trc_burst_ge onto bin_on / bin_off around bin_thr
    """

    burst_quarters: Tuple[int, ...] = DEFAULT_BURST_QUARTERS
    binarize: bool = False
    bin_thr: float = 0.4
    bin_on: float = 0.3
    bin_off: float = 0.0

    _validation_rules: ClassVar[Dict[str, Tuple[str, ...]]] = {
        "burst_quarters": ("quarters",),
        "bin_thr": ("non_negative", "finite"),
        "bin_on": ("unit_interval",),
        "bin_off": ("unit_interval",),
    }

    def __post_init__(self) -> None:
        self.burst_quarters = tuple(self.burst_quarters)
        self.validate_config()
        if self.bin_off > self.bin_on:
            raise ConfigurationError(
                f"bin_off={self.bin_off} must not exceed bin_on={self.bin_on}"
            )

    def is_burst_quarter(self, quarter: int) -> bool:
        return quarter in self.burst_quarters


@dataclass
class DeepAttnParams(ValidatedConfig):
    """Attentional modulation of superficial activation.

    learn_mod = attn_ge / max(attn_ge) once max(attn_ge) reaches thr (else 1)
    attn = min + (1 - min) * learn_mod
    """

    on: bool = True
    min: float = 0.8
    thr: float = 0.1

    _validation_rules: ClassVar[Dict[str, Tuple[str, ...]]] = {
        "min": ("unit_interval",),
        "thr": ("non_negative", "finite"),
    }

    def __post_init__(self) -> None:
        self.validate_config()

    @property
    def range(self) -> float:
        return 1.0 - self.min


# =============================================================================
# COMPONENT CONFIGS
# =============================================================================


@dataclass
class LayerConfig(BaseConfig):
    """All parameters of a deep layer, whatever its role.

    Role decides which bundles are consulted: burst for SUPER (and DEEP
    self connections), ctxt for DEEP, trc for TRC, attn for SUPER.
    """

    act: ActParams = field(default_factory=ActParams)
    inhib: InhibParams = field(default_factory=InhibParams)
    burst: DeepBurstParams = field(default_factory=DeepBurstParams)
    ctxt: DeepCtxtParams = field(default_factory=DeepCtxtParams)
    trc: DeepTRCParams = field(default_factory=DeepTRCParams)
    attn: DeepAttnParams = field(default_factory=DeepAttnParams)


@dataclass
class ProjectionConfig(BaseConfig, ValidatedConfig):
    """Projection weight initialization.

    Weights are uniform in [wt_mean - wt_var, wt_mean + wt_var]; wt_var = 0
    gives constant weights.
    """

    wt_mean: float = 0.5
    wt_var: float = 0.25

    _validation_rules: ClassVar[Dict[str, Tuple[str, ...]]] = {
        "wt_mean": ("finite",),
        "wt_var": ("non_negative", "finite"),
    }

    def __post_init__(self) -> None:
        self.validate_config()
