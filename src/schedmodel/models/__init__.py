"""
Machine scheduling models.

Built-in models are Python factory functions. Any other machine is loaded
from <definitions_path>/<name>.yaml (see schedmodel.config).

Usage:
    from schedmodel.models import power9_sched_model, get_sched_model
    model = power9_sched_model()
    model = get_sched_model("power9")
"""

from .power9 import power9_sched_model
from .registry import get_sched_model, list_sched_models, BUILTIN_MODELS

__all__ = [
    'power9_sched_model',
    'get_sched_model',
    'list_sched_models',
    'BUILTIN_MODELS',
]
