"""Configuration for a bulkcast run.

Settings can come from a YAML file and are overridden by command-line
flags. The only required value is the bulk size.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from .engine import UnterminatedBlockPolicy, validate_bulk_size
from .errors import ConfigError
from .gate import BlockMarkers, UnmatchedClosePolicy


def parse_bulk_size(value: object) -> int:
    """Parse a bulk size from a command-line string or a config value.

    Raises:
        ConfigError: If the value is missing, not an integer or not positive.
    """
    if value is None or value == "":
        raise ConfigError("Bulk size is not specified.")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise ConfigError(f"Invalid bulk size: {value!r}") from None
    try:
        return validate_bulk_size(value)
    except ConfigError:
        raise ConfigError(f"Invalid bulk size: {value!r}") from None


def _parse_enum(enum_cls, value: object, key: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ConfigError(
            f"Invalid value for {key}: {value!r} (expected one of: {choices})"
        ) from None


def _require_str(value: object, key: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string, got {value!r}")
    return value


def _require_bool(value: object, key: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


@dataclass
class BulkConfig:
    """Settings for the engine, the gate and the reference sinks."""

    bulk_size: int
    block_open: str = "{"
    block_close: str = "}"
    unmatched_close: UnmatchedClosePolicy = UnmatchedClosePolicy.IGNORE
    unterminated_block: UnterminatedBlockPolicy = UnterminatedBlockPolicy.DROP
    console: bool = True
    log_dir: Path | None = Path(".")

    def validate(self) -> None:
        """Check every field.

        Raises:
            ConfigError: If any value is invalid.
        """
        validate_bulk_size(self.bulk_size)
        self.markers()
        if not isinstance(self.unmatched_close, UnmatchedClosePolicy):
            raise ConfigError(f"Invalid unmatched_close: {self.unmatched_close!r}")
        if not isinstance(self.unterminated_block, UnterminatedBlockPolicy):
            raise ConfigError(
                f"Invalid unterminated_block: {self.unterminated_block!r}"
            )

    def markers(self) -> BlockMarkers:
        """Return the configured block markers."""
        return BlockMarkers(open=self.block_open, close=self.block_close)

    def to_dict(self) -> dict:
        """Serialize to dict for YAML storage."""
        return {
            "bulk_size": self.bulk_size,
            "blocks": {
                "open": self.block_open,
                "close": self.block_close,
                "unmatched_close": self.unmatched_close.value,
                "unterminated": self.unterminated_block.value,
            },
            "sinks": {
                "console": self.console,
                "log_dir": str(self.log_dir) if self.log_dir is not None else None,
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> BulkConfig:
        """Deserialize from dict and validate.

        Raises:
            ConfigError: If a value is missing or invalid.
        """
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")

        blocks = data.get("blocks") or {}
        sinks = data.get("sinks") or {}
        if not isinstance(blocks, dict) or not isinstance(sinks, dict):
            raise ConfigError("'blocks' and 'sinks' must be mappings")

        log_dir = sinks.get("log_dir", ".")
        if log_dir is not None and not isinstance(log_dir, (str, Path)):
            raise ConfigError(f"sinks.log_dir must be a string, got {log_dir!r}")
        config = cls(
            bulk_size=parse_bulk_size(data.get("bulk_size")),
            block_open=_require_str(blocks.get("open", "{"), "blocks.open"),
            block_close=_require_str(blocks.get("close", "}"), "blocks.close"),
            unmatched_close=_parse_enum(
                UnmatchedClosePolicy,
                blocks.get("unmatched_close", UnmatchedClosePolicy.IGNORE),
                "blocks.unmatched_close",
            ),
            unterminated_block=_parse_enum(
                UnterminatedBlockPolicy,
                blocks.get("unterminated", UnterminatedBlockPolicy.DROP),
                "blocks.unterminated",
            ),
            console=_require_bool(sinks.get("console", True), "sinks.console"),
            log_dir=Path(log_dir) if log_dir is not None else None,
        )
        config.validate()
        return config


def load_config(config_path: Path) -> dict:
    """Load a YAML configuration file as a dict.

    An empty file yields an empty dict.

    Raises:
        ConfigError: If the file is missing, unreadable or not a mapping.
    """
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {config_path}")
    return data
