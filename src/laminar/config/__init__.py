"""Configuration dataclasses for layers and projections."""

from laminar.config.base import BaseConfig
from laminar.config.layer_config import (
    QUARTERS_PER_TRIAL,
    ActParams,
    DeepAttnParams,
    DeepBurstParams,
    DeepCtxtParams,
    DeepTRCParams,
    InhibParams,
    LayerConfig,
    OptThreshParams,
    ProjectionConfig,
)
from laminar.config.validation import ValidatedConfig, ValidatorRegistry

__all__ = [
    "QUARTERS_PER_TRIAL",
    "ActParams",
    "BaseConfig",
    "DeepAttnParams",
    "DeepBurstParams",
    "DeepCtxtParams",
    "DeepTRCParams",
    "InhibParams",
    "LayerConfig",
    "OptThreshParams",
    "ProjectionConfig",
    "ValidatedConfig",
    "ValidatorRegistry",
]
