"""Find and read the [tool.conversion-fixer] table. Infrastructure I/O only."""

import logging
import sys
from pathlib import Path
from typing import Optional

from conversion_fixer.domain.exceptions import ConfigurationError

if sys.version_info >= (3, 11):
    import tomllib as toml_lib
else:
    import tomli as toml_lib

logger = logging.getLogger(__name__)


class ConfigFileLoader:
    """Loads config from the nearest pyproject.toml."""

    SECTION: str = "conversion-fixer"

    @staticmethod
    def find_pyproject(start: Optional[Path] = None) -> Optional[Path]:
        """Nearest pyproject.toml at or above ``start`` (default: cwd)."""
        current = (start or Path.cwd()).resolve()
        for directory in (current, *current.parents):
            candidate = directory / "pyproject.toml"
            if candidate.is_file():
                return candidate
        return None

    @staticmethod
    def load_config_from_fs(start: Optional[Path] = None) -> dict[str, object]:
        """The [tool.conversion-fixer] table, or {} when there is none."""
        pyproject = ConfigFileLoader.find_pyproject(start)
        if pyproject is None:
            return {}
        try:
            with pyproject.open("rb") as f:
                data = toml_lib.load(f)
        except OSError as e:
            logger.warning("Cannot read %s: %s", pyproject, e)
            return {}
        except toml_lib.TOMLDecodeError as e:
            raise ConfigurationError(f"{pyproject} is not valid TOML: {e}") from e

        section = data.get("tool", {}).get(ConfigFileLoader.SECTION, {})
        if not isinstance(section, dict):
            raise ConfigurationError(f"[tool.{ConfigFileLoader.SECTION}] in {pyproject} must be a table")
        logger.debug("Loaded [tool.%s] from %s", ConfigFileLoader.SECTION, pyproject)
        return section
