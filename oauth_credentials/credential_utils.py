"""
Shared utilities for the OAuth credential loader.

- Configuration file loading with credential interpolation
- Error wrapping with consistent logging
- Safe previews of identifiers for log lines
"""

import json
import logging
import os
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .credential_errors import CredentialLoadError
from .get_credential import interpolate_credentials

logger = logging.getLogger(__name__)


class ConfigurationLoader:
    """Configuration file loading with credential interpolation."""

    @staticmethod
    def load_from_file(
        file_path: str,
        environ: Optional[Mapping[str, str]] = None
    ) -> Dict[str, Any]:
        """Load configuration from JSON or YAML file."""
        file_path = os.path.expanduser(file_path)
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(file_path, 'r') as f:
            if file_path.endswith(('.yaml', '.yml')):
                config = yaml.safe_load(f)
            else:
                config = json.load(f)

        logger.debug(f"Loaded credential loader config from {file_path}")
        return ConfigurationLoader._interpolate_config(config, environ)

    @staticmethod
    def _interpolate_config(
        config: Union[Dict, list, str, Any],
        environ: Optional[Mapping[str, str]] = None
    ) -> Any:
        """Recursively interpolate credentials in configuration."""
        if isinstance(config, dict):
            return {k: ConfigurationLoader._interpolate_config(v, environ) for k, v in config.items()}
        elif isinstance(config, list):
            return [ConfigurationLoader._interpolate_config(item, environ) for item in config]
        elif isinstance(config, str):
            return interpolate_credentials(config, environ)
        else:
            return config


class ErrorHandler:
    """Unified error wrapping with consistent logging."""

    @staticmethod
    def log_and_wrap(
        logger_instance: logging.Logger,
        message: str,
        exception: BaseException
    ) -> CredentialLoadError:
        """Log error and build the caller-facing CredentialLoadError for it."""
        detail = getattr(exception, "message", None) or str(exception) or type(exception).__name__
        logger_instance.error(f"{message}: {detail}")
        error = CredentialLoadError(f"{message}: {detail}", cause=exception)
        error.__cause__ = exception
        return error


def preview_value(value: Optional[str], visible: int = 8) -> Optional[str]:
    """Truncate an identifier for log output."""
    if not value:
        return value
    if len(value) <= visible:
        return value
    return f"{value[:visible]}..."
