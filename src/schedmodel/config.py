"""
Model Configuration

Manages where machine definitions are looked up and where build logs go.

Configuration is loaded from (in order of precedence):
1. Environment variables (SCHEDMODEL_DEFINITIONS_PATH, SCHEDMODEL_LOG_DIR,
   SCHEDMODEL_DEFAULT_MACHINE)
2. User config file (~/.config/schedmodel/config.json)
3. Project config file (.schedmodel/config.json in the project root)
4. Default paths
"""

import os
import json
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any

from .logging import get_logger


@dataclass
class ModelConfig:
    """Configuration for machine model lookup and logging."""

    definitions_path: Path = field(default_factory=lambda: Path())
    """Directory searched for <machine>.yaml definition files."""

    log_dir: Optional[Path] = None
    """Directory for build logs. None logs to the console only."""

    default_machine: str = "power9"
    """Machine returned by get_sched_model() when no name is given."""

    def __post_init__(self):
        if isinstance(self.definitions_path, str):
            self.definitions_path = Path(self.definitions_path)
        if isinstance(self.log_dir, str):
            self.log_dir = Path(self.log_dir)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = asdict(self)
        result['definitions_path'] = str(self.definitions_path)
        result['log_dir'] = str(self.log_dir) if self.log_dir else None
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ModelConfig':
        """Create from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


def _find_project_root() -> Optional[Path]:
    """Find the project root by looking for pyproject.toml."""
    current = Path.cwd()
    for parent in [current] + list(current.parents):
        if (parent / 'pyproject.toml').exists():
            return parent
    return None


def _user_config_dir() -> Path:
    if os.name == 'nt':
        return Path(os.environ.get('APPDATA', Path.home() / 'AppData' / 'Roaming'))
    return Path(os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config'))


def _get_default_definitions_path() -> Path:
    """Project-local machine_definitions/ if present, else the user data dir."""
    project_root = _find_project_root()
    if project_root:
        local = project_root / 'machine_definitions'
        if local.exists():
            return local

    if os.name == 'nt':
        base = Path(os.environ.get('LOCALAPPDATA', Path.home() / 'AppData' / 'Local'))
    else:
        base = Path(os.environ.get('XDG_DATA_HOME', Path.home() / '.local' / 'share'))
    return base / 'schedmodel' / 'machine_definitions'


def _load_config_file(path: Path) -> Optional[Dict[str, Any]]:
    """Load configuration from a JSON file; unreadable files are skipped with a warning."""
    if path.exists():
        try:
            with open(path) as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            get_logger().warning(f"Ignoring unreadable config file {path}: {e}")
    return None


def get_config() -> ModelConfig:
    """
    Get the model configuration.

    Returns:
        ModelConfig assembled from defaults, config files and environment
    """
    config_data: Dict[str, Any] = {'definitions_path': _get_default_definitions_path()}

    project_root = _find_project_root()
    if project_root:
        project_config = _load_config_file(project_root / '.schedmodel' / 'config.json')
        if project_config:
            config_data.update(project_config)

    user_config = _load_config_file(_user_config_dir() / 'schedmodel' / 'config.json')
    if user_config:
        config_data.update(user_config)

    env_definitions = os.environ.get('SCHEDMODEL_DEFINITIONS_PATH')
    if env_definitions:
        config_data['definitions_path'] = env_definitions

    env_log_dir = os.environ.get('SCHEDMODEL_LOG_DIR')
    if env_log_dir:
        config_data['log_dir'] = env_log_dir

    env_machine = os.environ.get('SCHEDMODEL_DEFAULT_MACHINE')
    if env_machine:
        config_data['default_machine'] = env_machine

    return ModelConfig.from_dict(config_data)


def save_config(config: ModelConfig, path: Optional[Path] = None) -> Path:
    """
    Save configuration to a file.

    Args:
        config: Configuration to save
        path: Path to save to (default: user config directory)
    """
    if path is None:
        path = _user_config_dir() / 'schedmodel' / 'config.json'

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)
    return path
