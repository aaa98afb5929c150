"""Configuration for the conversion fixer, read from [tool.conversion-fixer]."""

import logging
from typing import Optional

from conversion_fixer.domain.constants import DEFAULT_MYPY_CODES
from conversion_fixer.domain.exceptions import ConfigurationError

_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class ConfigurationLoader:
    """
    Validated view over the [tool.conversion-fixer] table.

    Keys:
        mypy_args:  extra arguments passed to mypy (list of str)
        mypy_codes: mypy error codes treated as incompatible conversions
        log_level:  logging level name used by the CLI
    """

    def __init__(self, config: Optional[dict[str, object]] = None) -> None:
        self._config: dict[str, object] = dict(config or {})
        self.validate_config(self._config)

    def validate_config(self, config: dict[str, object]) -> None:
        """Validate configuration values."""
        for key in ("mypy_args", "mypy_codes"):
            value = config.get(key)
            if value is None:
                continue
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigurationError(f"'{key}' must be a list of strings, got {value!r}")

        level = config.get("log_level")
        if level is not None and str(level).upper() not in _LOG_LEVELS:
            raise ConfigurationError(f"'log_level' must be one of {sorted(_LOG_LEVELS)}, got {level!r}")

        known = {"mypy_args", "mypy_codes", "log_level"}
        unknown = sorted(set(config) - known)
        if unknown:
            logging.warning("Configuration Warning: unknown [tool.conversion-fixer] keys: %s",
                            ", ".join(unknown))

    @property
    def config(self) -> dict[str, object]:
        """Return the loaded configuration."""
        return self._config

    @property
    def mypy_args(self) -> list[str]:
        return [str(a) for a in self._get_list("mypy_args")]

    @property
    def mypy_codes(self) -> list[str]:
        codes = self._get_list("mypy_codes")
        return [str(c) for c in codes] if codes else list(DEFAULT_MYPY_CODES)

    @property
    def log_level(self) -> int:
        level = str(self._config.get("log_level", "WARNING")).upper()
        return int(getattr(logging, level, logging.WARNING))

    def _get_list(self, key: str) -> list[object]:
        value = self._config.get(key)
        return list(value) if isinstance(value, list) else []
