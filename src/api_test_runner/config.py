"""
Configuration management for the API test runner.
"""

import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Module-level lock for thread-safe config loading
_config_lock = threading.Lock()

VALID_REPORT_FORMATS = ["console", "junit", "json"]

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass
class RunnerConfig:
    """Main configuration for the API test runner.

    Run options (``stop_on_failure``, ``delay_between_requests`` and
    ``variables``) are defaults for runs started from the command line; an
    explicit run request overrides them.

    Example config YAML::

        timeout_seconds: 30
        verify_tls: false
        stop_on_failure: true
        delay_between_requests: 250
        variables:
          baseUrl: https://staging.example.com
        report_format: junit
        storage_dir: ~/.api-test/workspaces
    """

    # HTTP configuration
    timeout_seconds: int = 30
    verify_tls: bool = False

    # Run defaults
    stop_on_failure: bool = False
    delay_between_requests: int = 0  # milliseconds
    variables: Dict[str, str] = field(default_factory=dict)

    # Reporting configuration
    report_format: str = "console"  # console, junit, json

    # Collection storage
    storage_dir: str = "~/.api-test/workspaces"

    def __post_init__(self) -> None:
        """Normalize values loaded from YAML."""
        if self.variables is None:
            self.variables = {}
        if not isinstance(self.variables, dict):
            raise ConfigurationError("variables must be a mapping of name to value")
        self.variables = {str(k): str(v) for k, v in self.variables.items()}

    @property
    def storage_path(self) -> str:
        """Storage directory with ``~`` expanded."""
        return os.path.expanduser(self.storage_dir)


def _parse_env_int(var_name: str) -> Optional[int]:
    """
    Safely parse an integer from an environment variable.

    Args:
        var_name: Name of the environment variable

    Returns:
        Parsed integer value, or None if the variable is not set

    Raises:
        ConfigurationError: If the value cannot be parsed as an integer
    """
    value = os.environ.get(var_name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(
            f"Environment variable {var_name} must be a valid integer, got: '{value}'"
        )


def _parse_env_bool(var_name: str) -> Optional[bool]:
    """Parse a boolean flag (true/false, yes/no, on/off, 1/0) from the environment."""
    value = os.environ.get(var_name)
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"Environment variable {var_name} must be a boolean (true/false), got: '{value}'"
    )


def load_config(config_file: Optional[str] = None) -> RunnerConfig:
    """
    Load configuration from file and environment variables.

    Configuration precedence (highest to lowest):
    1. Environment variables
    2. Configuration file
    3. Default values

    Args:
        config_file: Path to YAML configuration file (optional)

    Returns:
        RunnerConfig object with merged configuration

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist
        ConfigurationError: If config file has invalid YAML or env vars are invalid
    """
    with _config_lock:
        config_data: Dict[str, Any] = {}

        if config_file:
            logger.info("Loading configuration from %s", config_file)
            try:
                with open(config_file, "r") as f:
                    file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in config file '{config_file}': {e}")
            except FileNotFoundError:
                raise FileNotFoundError(f"Configuration file not found: {config_file}")
            except PermissionError:
                raise ConfigurationError(f"Permission denied reading config file '{config_file}'")
            except OSError as e:
                raise ConfigurationError(f"Unable to read config file '{config_file}': {e}")

            if not isinstance(file_config, dict):
                raise ConfigurationError(
                    f"Config file '{config_file}' must contain a mapping at the top level"
                )
            config_data.update(file_config)

        env_overrides = _load_from_env()
        config_data.update(env_overrides)
        if env_overrides:
            logger.debug("Applied environment variable overrides: %s", list(env_overrides.keys()))

        try:
            return RunnerConfig(**config_data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")


def _load_from_env() -> Dict[str, Any]:
    """
    Load configuration from environment variables.

    Supported environment variables:
    - API_TEST_TIMEOUT: Request timeout in seconds
    - API_TEST_VERIFY_TLS: Validate TLS certificates (true/false)
    - API_TEST_STOP_ON_FAILURE: Stop a run at the first failure (true/false)
    - API_TEST_DELAY_MS: Delay between requests in milliseconds
    - API_TEST_REPORT_FORMAT: Report format (console, junit, json)
    - API_TEST_STORAGE_DIR: Directory holding workspaces and collections

    Returns:
        Dictionary of configuration values from environment

    Raises:
        ConfigurationError: If environment variable values are invalid
    """
    env_config: Dict[str, Any] = {}

    timeout = _parse_env_int("API_TEST_TIMEOUT")
    if timeout is not None:
        if timeout <= 0:
            raise ConfigurationError(
                f"Environment variable API_TEST_TIMEOUT must be a positive integer, got: {timeout}"
            )
        env_config["timeout_seconds"] = timeout

    verify_tls = _parse_env_bool("API_TEST_VERIFY_TLS")
    if verify_tls is not None:
        env_config["verify_tls"] = verify_tls

    stop_on_failure = _parse_env_bool("API_TEST_STOP_ON_FAILURE")
    if stop_on_failure is not None:
        env_config["stop_on_failure"] = stop_on_failure

    delay = _parse_env_int("API_TEST_DELAY_MS")
    if delay is not None:
        env_config["delay_between_requests"] = delay

    if "API_TEST_REPORT_FORMAT" in os.environ:
        env_config["report_format"] = os.environ["API_TEST_REPORT_FORMAT"]

    if "API_TEST_STORAGE_DIR" in os.environ:
        env_config["storage_dir"] = os.environ["API_TEST_STORAGE_DIR"]

    return env_config


def validate_config(config: RunnerConfig) -> List[str]:
    """
    Validate configuration and return list of errors.

    Args:
        config: RunnerConfig to validate

    Returns:
        List of error messages (empty if valid)
    """
    errors: List[str] = []

    if config.timeout_seconds <= 0:
        errors.append(f"timeout_seconds must be positive: {config.timeout_seconds}")
    elif config.timeout_seconds > 300:
        errors.append(f"timeout_seconds is too large (max 300): {config.timeout_seconds}")

    if config.delay_between_requests < 0:
        errors.append(
            f"delay_between_requests must not be negative: {config.delay_between_requests}"
        )

    if config.report_format not in VALID_REPORT_FORMATS:
        errors.append(
            f"report_format must be one of {VALID_REPORT_FORMATS}: {config.report_format}"
        )

    if not config.storage_dir:
        errors.append("storage_dir is required")

    return errors
