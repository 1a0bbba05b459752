"""
Configuration Management for StarForm

Dataclass configuration for form factories, rendering, persistence and
logging, with environment presets and loading from dictionaries, JSON/YAML
files or environment variables.
"""

from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field, asdict
from enum import Enum
import os
from pathlib import Path


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class RenderConfig:
    """Form renderer configuration"""
    label_cols: int = 3
    control_cols: int = 9
    ajax: bool = False
    template_file: Optional[str] = None


@dataclass
class FormConfig:
    """Form factory configuration"""
    submit_button: bool = True
    expose_id: bool = True
    insert_label: str = "Create"
    update_label: str = "Save"
    error_message: str = "The record could not be saved."
    render: RenderConfig = field(default_factory=RenderConfig)


@dataclass
class PersistenceConfig:
    """Persistence layer configuration"""
    database_url: str = "sqlite:///starform.db"
    echo: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


def _update(target: Any, values: Dict[str, Any]) -> None:
    for key, value in values.items():
        if hasattr(target, key):
            setattr(target, key, value)


def _env_bool(value: str) -> bool:
    return value.lower() in ("1", "true", "yes", "on")


@dataclass
class ApplicationConfig:
    """Complete application configuration"""
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    form: FormConfig = field(default_factory=FormConfig)
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Custom configuration
    custom: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_environment(cls, environment: Environment) -> 'ApplicationConfig':
        """Create configuration for specific environment"""
        config = cls(environment=environment)

        if environment == Environment.DEVELOPMENT:
            config.debug = True
            config.logging.level = "DEBUG"
            config.persistence.echo = True

        elif environment == Environment.TESTING:
            config.persistence.database_url = "sqlite://"
            config.logging.level = "WARNING"

        elif environment == Environment.PRODUCTION:
            config.debug = False
            config.logging.level = "INFO"
            config.logging.file_path = "/var/log/starform/app.log"

        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary"""
        environment = Environment(config_dict.get("environment", Environment.DEVELOPMENT.value))
        config = cls(environment=environment)

        if "debug" in config_dict:
            config.debug = bool(config_dict["debug"])

        form = dict(config_dict.get("form", {}))
        render = form.pop("render", None)
        _update(config.form, form)
        if render:
            _update(config.form.render, render)

        _update(config.persistence, config_dict.get("persistence", {}))
        _update(config.logging, config_dict.get("logging", {}))
        config.custom.update(config_dict.get("custom", {}))
        return config

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'ApplicationConfig':
        """Load configuration from a JSON or YAML file"""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix == '.json':
            import json
            with open(config_path) as f:
                config_dict = json.load(f)
        elif config_path.suffix in ('.yml', '.yaml'):
            try:
                import yaml
            except ImportError:
                raise ImportError("PyYAML is required for YAML configuration files")
            with open(config_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

        return cls.from_dict(config_dict)

    @classmethod
    def from_environment(cls) -> 'ApplicationConfig':
        """Create configuration from environment variables"""
        env_name = os.getenv('STARFORM_ENV', 'development')
        config = cls.for_environment(Environment(env_name))

        if os.getenv('STARFORM_DEBUG'):
            config.debug = _env_bool(os.getenv('STARFORM_DEBUG'))

        if os.getenv('STARFORM_DATABASE_URL'):
            config.persistence.database_url = os.getenv('STARFORM_DATABASE_URL')

        if os.getenv('STARFORM_LABEL_COLS'):
            config.form.render.label_cols = int(os.getenv('STARFORM_LABEL_COLS'))

        if os.getenv('STARFORM_CONTROL_COLS'):
            config.form.render.control_cols = int(os.getenv('STARFORM_CONTROL_COLS'))

        if os.getenv('STARFORM_AJAX'):
            config.form.render.ajax = _env_bool(os.getenv('STARFORM_AJAX'))

        if os.getenv('STARFORM_LOG_LEVEL'):
            config.logging.level = os.getenv('STARFORM_LOG_LEVEL').upper()

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "environment": self.environment.value,
            "debug": self.debug,
            "form": asdict(self.form),
            "persistence": asdict(self.persistence),
            "logging": asdict(self.logging),
            "custom": dict(self.custom),
        }


# Global configuration management
_current_config: Optional[ApplicationConfig] = None


def set_config(config: Optional[ApplicationConfig]):
    """Set the global configuration; None resets it"""
    global _current_config
    _current_config = config


def get_config() -> ApplicationConfig:
    """Get the current global configuration"""
    global _current_config

    if _current_config is None:
        # Auto-create from environment if not set
        _current_config = ApplicationConfig.from_environment()

    return _current_config


def configure_from_file(config_path: Union[str, Path]) -> ApplicationConfig:
    """Configure from file"""
    config = ApplicationConfig.from_file(config_path)
    set_config(config)
    return config


def configure_from_dict(config_dict: Dict[str, Any]) -> ApplicationConfig:
    """Configure from dictionary"""
    config = ApplicationConfig.from_dict(config_dict)
    set_config(config)
    return config


__all__ = [
    "ApplicationConfig", "Environment", "RenderConfig", "FormConfig",
    "PersistenceConfig", "LoggingConfig",
    "set_config", "get_config", "configure_from_file", "configure_from_dict",
]
