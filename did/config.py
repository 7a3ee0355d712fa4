"""
did - Configuration Management

Settings live in an optional config.toml in the application directory
(see did.paths). did works without it; every key has a default.

    week_start_day = "monday"   # or "sunday"
    timezone = "Local"          # or an IANA name such as "Europe/London"
    default_output_format = ""  # "json" or "csv": default for `did export`
    retention_days = 7          # soft-deleted entries are purged after this
"""

import tomllib
from dataclasses import asdict, dataclass
from datetime import timedelta, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from did.exceptions import ConfigError
from did.paths import get_config_path

VALID_WEEK_START_DAYS = ("monday", "sunday")
VALID_OUTPUT_FORMATS = ("", "json", "csv")


@dataclass
class DidConfig:
    """Main configuration container for did."""

    week_start_day: str = "monday"
    timezone: str = "Local"
    default_output_format: str = ""
    retention_days: int = 7

    def validate(self) -> None:
        """
        Check and normalize values in place.

        Raises:
            ConfigError: If any value is invalid
        """
        week_start = str(self.week_start_day).strip().lower()
        if week_start not in VALID_WEEK_START_DAYS:
            raise ConfigError(
                f"invalid week_start_day: must be 'monday' or 'sunday', got '{self.week_start_day}'"
            )
        self.week_start_day = week_start

        output_format = str(self.default_output_format).strip().lower()
        if output_format not in VALID_OUTPUT_FORMATS:
            raise ConfigError(
                f"invalid default_output_format: must be 'json' or 'csv', got '{self.default_output_format}'"
            )
        self.default_output_format = output_format

        if not isinstance(self.timezone, str):
            raise ConfigError(f"invalid timezone: must be a string, got {self.timezone!r}")
        if self.timezone and self.timezone != "Local":
            try:
                ZoneInfo(self.timezone)
            except (ZoneInfoNotFoundError, ValueError):
                raise ConfigError(
                    f"invalid timezone: '{self.timezone}' is not a valid IANA timezone",
                    {"examples": ["America/New_York", "Europe/London", "UTC"]},
                )

        if isinstance(self.retention_days, bool) or not isinstance(self.retention_days, int):
            raise ConfigError(
                f"invalid retention_days: must be an integer, got {self.retention_days!r}"
            )
        if self.retention_days < 1:
            raise ConfigError(
                f"invalid retention_days: must be at least 1, got {self.retention_days}"
            )

    @property
    def retention(self) -> timedelta:
        """How long soft-deleted entries are kept before auto-purge."""
        return timedelta(days=self.retention_days)

    @property
    def tzinfo(self) -> tzinfo | None:
        """Configured timezone, or None for the system local zone."""
        if not self.timezone or self.timezone == "Local":
            return None
        return ZoneInfo(self.timezone)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DidConfig":
        """Create from a parsed TOML table; unknown keys are rejected."""
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigError(
                f"Unknown configuration key(s): {', '.join(sorted(unknown))}",
                {"valid": sorted(cls.__dataclass_fields__)},
            )
        return cls(**data)


def load_config(path: str | Path | None = None) -> DidConfig:
    """
    Load configuration from a TOML file.

    Args:
        path: Config file path; defaults to <app dir>/config.toml

    Returns:
        DidConfig with defaults for anything not set. Defaults only when
        the file does not exist.

    Raises:
        ConfigError: If the file cannot be read or parsed, or holds invalid values
    """
    config_path = Path(path) if path else get_config_path()

    if not config_path.exists():
        return DidConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(
            f"Invalid TOML in {config_path}",
            {"error": str(e)},
        )
    except UnicodeDecodeError as e:
        raise ConfigError(
            f"Config file {config_path} is not valid UTF-8",
            {"error": str(e)},
        )
    except OSError as e:
        raise ConfigError(
            f"Cannot read config file {config_path}",
            {"error": str(e)},
        )

    config = DidConfig.from_dict(data)
    config.validate()
    return config


def write_sample_config(path: str | Path | None = None) -> Path:
    """
    Write the commented sample config if no config file exists yet.

    Raises:
        ConfigError: If a config file already exists
    """
    config_path = Path(path) if path else get_config_path()
    if config_path.exists():
        raise ConfigError(f"Config file already exists: {config_path}")
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(generate_sample_config(), encoding="utf-8")
    return config_path


def generate_sample_config() -> str:
    """Sample config.toml with every option commented out."""
    return """\
# did configuration file
# This file is optional. Uncomment and change only what you need.

# Which day starts the week for the 'week' and 'lastweek' periods.
# Valid values: "monday", "sunday"
# week_start_day = "monday"

# Timezone for displaying and bucketing entries.
# Any IANA timezone name, or "Local" for the system timezone.
# timezone = "Local"

# Format 'did export' uses when none is given.
# Valid values: "json", "csv"
# default_output_format = "json"

# Days a deleted entry stays recoverable with 'did undo' before it is
# purged automatically.
# retention_days = 7
"""
