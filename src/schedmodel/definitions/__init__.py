"""
Declarative machine definitions (YAML / dict) for scheduling models.
"""

from .schema import (
    build_model_from_dict,
    model_to_dict,
    load_model_from_yaml,
    save_model_to_yaml,
)

__all__ = [
    'build_model_from_dict',
    'model_to_dict',
    'load_model_from_yaml',
    'save_model_to_yaml',
]
