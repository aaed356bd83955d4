"""Mixin classes for layers and networks.

Available Mixins:
- DiagnosticsMixin: Standard activity, input, send and weight statistics
"""

from laminar.mixins.diagnostics_mixin import DiagnosticsMixin

__all__ = [
    'DiagnosticsMixin',
]
