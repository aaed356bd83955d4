"""
Base Configuration Classes.

Common fields shared by every layer and projection config.

Author: Laminar Project
Date: October 2026
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import torch

from laminar.errors import ConfigurationError


_DTYPE_MAP = {
    "float32": torch.float32,
    "float64": torch.float64,
    "float16": torch.float16,
    "bfloat16": torch.bfloat16,
}


@dataclass
class BaseConfig:
    """Base configuration with common fields for all components.

    - device: Hardware device (cpu/cuda)
    - dtype: Floating point type of unit state and weights
    - seed: Random seed for weight initialization
    """

    device: str = "cpu"
    """Device to run on: 'cpu', 'cuda', 'cuda:0', etc."""

    dtype: str = "float32"
    """Data type for state tensors: 'float32', 'float64', 'float16', 'bfloat16'."""

    seed: Optional[int] = None
    """Random seed for reproducibility. None = no seeding."""

    def get_torch_device(self) -> torch.device:
        """Get PyTorch device object."""
        return torch.device(self.device)

    def get_torch_dtype(self) -> torch.dtype:
        """Get PyTorch dtype object."""
        if self.dtype not in _DTYPE_MAP:
            raise ConfigurationError(
                f"Unknown dtype '{self.dtype}'. "
                f"Choose from: {list(_DTYPE_MAP.keys())}"
            )
        return _DTYPE_MAP[self.dtype]
