"""Runtime configuration, read from the environment."""

from dataclasses import dataclass
import logging
import os
import sys

from datev_lohn.errors import ValidationError


DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_PAGE_COUNT = 1000
DEFAULT_MAX_BUNDLE_SIZE = 100 * 1024 * 1024


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValidationError(f"{name} must be an integer, got {value!r}") from e


@dataclass(frozen=True)
class Settings:
    """Limits and output names for a processing run."""

    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_page_count: int = DEFAULT_MAX_PAGE_COUNT
    max_bundle_size: int = DEFAULT_MAX_BUNDLE_SIZE
    sepa_filename: str = "sepa-transfers.csv"
    metadata_filename: str = "metadata.json"
    stats_filename: str = "stats.json"
    log_level: str = "WARNING"

    @property
    def log_level_value(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.WARNING


def get_settings() -> Settings:
    """Build settings from DATEV_* environment variables.

    Raises:
        ValidationError: If a numeric variable is set but not an integer
    """
    return Settings(
        max_file_size=_env_int("DATEV_MAX_FILE_SIZE", DEFAULT_MAX_FILE_SIZE),
        max_page_count=_env_int("DATEV_MAX_PAGE_COUNT", DEFAULT_MAX_PAGE_COUNT),
        max_bundle_size=_env_int("DATEV_MAX_BUNDLE_SIZE", DEFAULT_MAX_BUNDLE_SIZE),
        sepa_filename=os.getenv("DATEV_SEPA_FILENAME", "sepa-transfers.csv"),
        log_level=os.getenv("DATEV_LOG_LEVEL", "WARNING"),
    )


def configure_logging(level: int = logging.WARNING) -> None:
    """Send log records to the current stderr. Called by the CLI only.

    Calling it again replaces the previous handler, so records never go to a
    stream that was swapped out or closed in the meantime.
    """
    logger = logging.getLogger("datev_lohn")
    logger.setLevel(level)
    for old_handler in list(logger.handlers):
        logger.removeHandler(old_handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%d.%m.%Y %H:%M:%S'
    ))
    logger.addHandler(handler)
