"""Weight Initialization - projection weight matrices."""

from __future__ import annotations

from typing import Optional, Union

import torch


class WeightInitializer:
    """
    Centralized weight initialization.

    All methods return torch.Tensor of shape [n_output, n_input], not
    nn.Parameter: projection weights are fixed state, learning is out of
    scope here.
    """

    @staticmethod
    def uniform(
        n_input: int,
        n_output: int,
        mean: float,
        var: float,
        device: Union[str, torch.device] = "cpu",
        dtype: torch.dtype = torch.float32,
        generator: Optional[torch.Generator] = None,
    ) -> torch.Tensor:
        """
        Full connectivity with weights uniform in [mean - var, mean + var].

        Args:
            n_input: Number of sending units
            n_output: Number of receiving units
            mean: Center of the distribution
            var: Half-width of the distribution (0 gives constant weights)
            device: Device for tensor
            dtype: Floating point type
            generator: Optional seeded generator

        Returns:
            Weight matrix [n_output, n_input]
        """
        if var < 0.0:
            raise ValueError(f"var must be non-negative, got {var}")
        if var == 0.0:
            return WeightInitializer.constant(n_input, n_output, mean, device=device, dtype=dtype)

        weights = torch.rand(
            n_output, n_input, generator=generator, device=device, dtype=dtype
        )
        return mean + var * (2.0 * weights - 1.0)

    @staticmethod
    def constant(
        n_input: int,
        n_output: int,
        value: float,
        device: Union[str, torch.device] = "cpu",
        dtype: torch.dtype = torch.float32,
    ) -> torch.Tensor:
        """Full connectivity with every weight equal to value."""
        return torch.full((n_output, n_input), value, device=device, dtype=dtype)
