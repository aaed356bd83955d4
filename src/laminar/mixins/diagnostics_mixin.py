"""
Diagnostics Mixin for Layers and Networks.

The mixin provides:
1. Activity statistics (mean, max, fraction active)
2. Integrated input statistics
3. Delta-send statistics (events per unit, i.e. communication load)
4. Projection weight statistics

Author: Laminar Project
Date: October 2026
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

import torch

if TYPE_CHECKING:
    from laminar.core.propagation import SendStats

ACTIVE_THRESHOLD = 0.1
"""Activity above which a unit counts as active in diagnostics."""


class DiagnosticsMixin:
    """Mixin providing common diagnostic computation patterns.

    All methods are static and use only the provided arguments, so they
    work regardless of the class structure.
    """

    @staticmethod
    def activity_diagnostics(
        acts: torch.Tensor,
        prefix: str = "",
    ) -> Dict[str, float]:
        """Compute rate-code activity statistics.

        Args:
            acts: Per-unit activity tensor (act, burst, ...)
            prefix: Prefix for metric names (e.g., "burst" -> "burst_mean")

        Returns:
            Dict with mean, max and fraction of active units
        """
        prefix = f"{prefix}_" if prefix else ""

        a = acts.detach().float()
        if a.numel() == 0:
            return {
                f"{prefix}mean": 0.0,
                f"{prefix}max": 0.0,
                f"{prefix}frac_active": 0.0,
            }

        return {
            f"{prefix}mean": a.mean().item(),
            f"{prefix}max": a.max().item(),
            f"{prefix}frac_active": (a > ACTIVE_THRESHOLD).float().mean().item(),
        }

    @staticmethod
    def input_diagnostics(
        inputs: torch.Tensor,
        prefix: str = "",
    ) -> Dict[str, float]:
        """Compute statistics of an integrated input (ge_raw, attn_ge, ...)."""
        prefix = f"{prefix}_" if prefix else ""

        g = inputs.detach().float()
        if g.numel() == 0:
            return {f"{prefix}mean": 0.0, f"{prefix}max": 0.0}

        return {
            f"{prefix}mean": g.mean().item(),
            f"{prefix}max": g.max().item(),
        }

    @staticmethod
    def send_diagnostics(
        stats: SendStats,
        n_units: int,
        prefix: str = "",
    ) -> Dict[str, float]:
        """Send/un-send counts of one sweep and events per unit."""
        prefix = f"{prefix}_" if prefix else ""

        return {
            f"{prefix}sends": float(stats.sends),
            f"{prefix}unsends": float(stats.unsends),
            f"{prefix}send_rate": stats.events / n_units if n_units > 0 else 0.0,
        }

    @staticmethod
    def weight_diagnostics(
        weights: torch.Tensor,
        prefix: str = "",
    ) -> Dict[str, float]:
        """Compute standard weight statistics.

        Args:
            weights: Weight tensor (any shape)
            prefix: Prefix for metric names (e.g., "V1ToTRC" -> "V1ToTRC_weight_mean")

        Returns:
            Dict with weight statistics
        """
        prefix = f"{prefix}_" if prefix else ""

        w = weights.detach()
        if w.numel() == 0:
            return {
                f"{prefix}weight_mean": 0.0,
                f"{prefix}weight_min": 0.0,
                f"{prefix}weight_max": 0.0,
            }

        return {
            f"{prefix}weight_mean": w.mean().item(),
            f"{prefix}weight_min": w.min().item(),
            f"{prefix}weight_max": w.max().item(),
        }
