"""
Model lookup by machine name.
"""

from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..config import ModelConfig, get_config
from ..core.resolution import SchedulingModel
from ..definitions.schema import load_model_from_yaml
from ..logging import ModelLogger, create_model_logger
from .power9 import power9_sched_model


BUILTIN_MODELS: Dict[str, Callable[..., SchedulingModel]] = {
    'power9': power9_sched_model,
}


def _definition_files(definitions_path: Path) -> Dict[str, Path]:
    if not definitions_path.is_dir():
        return {}
    return {p.stem: p for p in sorted(definitions_path.glob('*.yaml'))}


def list_sched_models(config: Optional[ModelConfig] = None) -> List[str]:
    """Names of the built-in models and the definition files on disk."""
    config = config or get_config()
    names = set(BUILTIN_MODELS) | set(_definition_files(config.definitions_path))
    return sorted(names)


def get_sched_model(
    name: Optional[str] = None,
    config: Optional[ModelConfig] = None,
    logger: Optional[ModelLogger] = None,
) -> SchedulingModel:
    """
    Build the scheduling model for a machine.

    Definition files take precedence over built-in models of the same name,
    so a project can override a built-in target.

    Args:
        name: Machine name (default: config.default_machine)
        config: Configuration (default: get_config())
        logger: Build logger (default: one writing to config.log_dir)

    Raises:
        KeyError: no built-in model or definition file for name
        DefinitionError: the definition file is invalid
    """
    config = config or get_config()
    name = name or config.default_machine
    if logger is None:
        with create_model_logger(
            name, output_dir=config.log_dir, register=False
        ) as build_logger:
            return get_sched_model(name, config=config, logger=build_logger)

    files = _definition_files(config.definitions_path)
    if name in files:
        logger.debug(f"Loading machine '{name}' from {files[name]}")
        return load_model_from_yaml(files[name], logger=logger)

    if name in BUILTIN_MODELS:
        return BUILTIN_MODELS[name](logger=logger)

    available = ", ".join(list_sched_models(config))
    raise KeyError(f"Machine '{name}' not found. Available: {available}")
