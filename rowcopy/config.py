"""Configuration management for table copies."""
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from jsonschema import Draft7Validator

DEFAULT_CONFIG_FILE = "rowcopy.yaml"
DEFAULT_STATE_FILE = ".rowcopy_state.json"

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "ROWCOPY_DB_HOST": ("database", "host"),
    "ROWCOPY_DB_PORT": ("database", "port"),
    "ROWCOPY_DB_NAME": ("database", "database"),
    "ROWCOPY_DB_USER": ("database", "user"),
    "ROWCOPY_DB_PASSWORD": ("database", "password"),
    "ROWCOPY_SMTP_PASSWORD": ("notifications", "password"),
}

_RULE_SCHEMA = {
    "type": "array",
    "minItems": 2,
    "maxItems": 2,
}

CONFIG_SCHEMA = {
    "type": "object",
    "required": ["database"],
    "properties": {
        "database": {
            "type": "object",
            "required": ["host", "port", "database", "user", "password"],
            "properties": {
                "host": {"type": "string"},
                "port": {"type": ["integer", "string"]},
                "database": {"type": "string"},
                "user": {"type": "string"},
                "password": {"type": ["string", "null"]},
                "timeout": {"type": "integer", "minimum": 0},
            },
        },
        "copy": {
            "type": "object",
            "properties": {
                "chunk_size": {"type": "integer", "minimum": 1},
                "batch_size": {"type": "integer", "minimum": 1},
                "id_column": {"type": "string"},
                "state_file": {"type": "string"},
            },
        },
        "notifications": {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "smtp_host": {"type": "string"},
                "smtp_port": {"type": "integer"},
                "use_tls": {"type": "boolean"},
                "username": {"type": ["string", "null"]},
                "password": {"type": ["string", "null"]},
                "sender": {"type": "string"},
                "recipients": {"type": "array", "items": {"type": "string"}},
                "subject": {"type": "string"},
            },
        },
        "logging": {
            "type": "object",
            "properties": {
                "level": {"enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
                "file": {"type": ["string", "null"]},
                "console": {"type": "boolean"},
                "format": {"type": "string"},
            },
        },
        "translations": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "additionalProperties": {"type": "array", "items": _RULE_SCHEMA},
            },
        },
    },
}


@dataclass
class DatabaseConfig:
    """PostgreSQL database connection configuration."""
    host: str
    port: int
    database: str
    user: str
    password: str
    timeout: int = 30


@dataclass
class CopyConfig:
    """Defaults for copy jobs."""
    chunk_size: int = 100000
    batch_size: int = 5000
    id_column: str = "id"
    state_file: str = DEFAULT_STATE_FILE


@dataclass
class NotificationConfig:
    """Email notification configuration."""
    enabled: bool = False
    smtp_host: Optional[str] = None
    smtp_port: int = 25
    use_tls: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    sender: str = "rowcopy@localhost"
    recipients: List[str] = field(default_factory=list)
    subject: str = "Maintenance Alert"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    console: bool = True
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Config:
    """Main configuration object."""
    database: DatabaseConfig
    copy: CopyConfig = field(default_factory=CopyConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    translations: Dict[str, Dict[str, List[List[Any]]]] = field(default_factory=dict)

    @classmethod
    def load(cls, config_path: str) -> "Config":
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Config object with validated configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If required fields are missing or invalid
        """
        data = load_config(config_path)
        if not data:
            raise ValueError("Configuration file is empty")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Build a Config from an already loaded dictionary."""
        errors = validate_config(data)
        if errors:
            raise ValueError("; ".join(errors))

        db_data = data['database']
        database_config = DatabaseConfig(
            host=db_data['host'],
            port=int(db_data['port']),
            database=db_data['database'],
            user=db_data['user'],
            password=db_data['password'],
            timeout=db_data.get('timeout', 30)
        )

        copy_data = data.get('copy') or {}
        copy_config = CopyConfig(
            chunk_size=copy_data.get('chunk_size', 100000),
            batch_size=copy_data.get('batch_size', 5000),
            id_column=copy_data.get('id_column', 'id'),
            state_file=copy_data.get('state_file', DEFAULT_STATE_FILE)
        )

        notification_data = data.get('notifications') or {}
        notification_config = NotificationConfig(
            enabled=notification_data.get('enabled', False),
            smtp_host=notification_data.get('smtp_host'),
            smtp_port=notification_data.get('smtp_port', 25),
            use_tls=notification_data.get('use_tls', False),
            username=notification_data.get('username'),
            password=notification_data.get('password'),
            sender=notification_data.get('sender', 'rowcopy@localhost'),
            recipients=list(notification_data.get('recipients') or []),
            subject=notification_data.get('subject', 'Maintenance Alert')
        )

        logging_data = data.get('logging') or {}
        logging_config = LoggingConfig(
            level=logging_data.get('level', 'INFO'),
            file=logging_data.get('file'),
            console=logging_data.get('console', True),
            format=logging_data.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )

        return cls(
            database=database_config,
            copy=copy_config,
            notifications=notification_config,
            logging=logging_config,
            translations=data.get('translations') or {}
        )


def apply_env_overrides(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Override configuration values from environment variables.

    Variables are also read from a ``.env`` file in the working directory.

    Args:
        config_data: Configuration dictionary, updated in place

    Returns:
        The updated configuration dictionary
    """
    load_dotenv()
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is None:
            continue
        if config_data.get(section) is None:
            config_data[section] = {}
        config_data[section][key] = int(value) if key == 'port' else value
    return config_data


def load_config(config_path: str) -> dict:
    """
    Load configuration from YAML file as dictionary.

    Args:
        config_path: Path to configuration file

    Returns:
        Dictionary with configuration data and environment overrides applied
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    return apply_env_overrides(data)


def validate_config(config_data: dict) -> List[str]:
    """
    Validate configuration data.

    Args:
        config_data: Configuration dictionary

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    validator = Draft7Validator(CONFIG_SCHEMA)

    for error in sorted(validator.iter_errors(config_data), key=lambda e: list(e.path)):
        if error.validator == 'required':
            section = ".".join(str(p) for p in error.path)
            missing = error.message.split("'")[1]
            name = f"{section}.{missing}" if section else missing
            errors.append(f"Missing required field: {name}")
        else:
            location = ".".join(str(p) for p in error.path) or "<root>"
            errors.append(f"Invalid value for {location}: {error.message}")

    return errors
