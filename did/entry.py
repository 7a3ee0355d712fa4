"""
did - Entry Record and Codec

An Entry is one logged activity. Each entry is stored as a single
compact JSON object on its own line. Optional fields (project, tags,
deleted_at) are omitted when empty and default when absent, so files
written before those fields existed still decode.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from did.exceptions import EntryDecodeError

# Maximum duration of a single entry (24 hours)
MAX_DURATION_MINUTES = 24 * 60


@dataclass
class Entry:
    """A single time tracking entry."""

    timestamp: datetime
    description: str
    duration_minutes: int
    raw_input: str = ""
    project: str = ""
    tags: list[str] = field(default_factory=list)
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        """True when the entry has been soft-deleted."""
        return self.deleted_at is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the on-disk dictionary shape, omitting empty optional fields."""
        data: dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(),
            "description": self.description,
            "duration_minutes": self.duration_minutes,
            "raw_input": self.raw_input,
        }
        if self.project:
            data["project"] = self.project
        if self.tags:
            data["tags"] = list(self.tags)
        if self.deleted_at is not None:
            data["deleted_at"] = self.deleted_at.isoformat()
        return data

    def to_json(self) -> str:
        """Serialize to a single newline-free JSON line."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Entry":
        """
        Create an Entry from a decoded JSON object.

        Unknown keys are ignored. Raises EntryDecodeError when a required
        field is missing or any field has the wrong type.
        """
        if not isinstance(data, dict):
            raise EntryDecodeError(
                f"expected a JSON object, got {type(data).__name__}"
            )

        return cls(
            timestamp=_parse_time(_require(data, "timestamp", str), "timestamp"),
            description=_require(data, "description", str),
            duration_minutes=_require_int(data, "duration_minutes"),
            raw_input=_optional(data, "raw_input", str, ""),
            project=_optional(data, "project", str, ""),
            tags=_optional_tags(data),
            deleted_at=_optional_time(data, "deleted_at"),
        )

    @classmethod
    def from_json(cls, line: str) -> "Entry":
        """Decode one stored line. Raises EntryDecodeError on any failure."""
        if not line.strip():
            raise EntryDecodeError("empty line")
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise EntryDecodeError(str(e)) from e
        except RecursionError as e:
            raise EntryDecodeError("JSON nested too deeply") from e
        except ValueError as e:
            # int() digit limit on oversized numbers
            raise EntryDecodeError(f"invalid JSON value: {e}") from e
        return cls.from_dict(data)


def encode_entry(entry: Entry) -> str:
    """Encode an entry as one line of text (without the trailing newline)."""
    return entry.to_json()


def decode_entry(line: str) -> Entry:
    """Decode one line of text into an entry."""
    return Entry.from_json(line)


def _require(data: dict[str, Any], key: str, kind: type) -> Any:
    if key not in data:
        raise EntryDecodeError(f"missing required field '{key}'")
    value = data[key]
    if not isinstance(value, kind):
        raise EntryDecodeError(
            f"field '{key}' must be {kind.__name__}, got {type(value).__name__}"
        )
    if isinstance(value, str):
        _check_text(value, key)
    return value


def _require_int(data: dict[str, Any], key: str) -> int:
    value = _require(data, key, int)
    # bool is a subclass of int
    if isinstance(value, bool):
        raise EntryDecodeError(f"field '{key}' must be int, got bool")
    return value


def _optional(data: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise EntryDecodeError(
            f"field '{key}' must be {kind.__name__}, got {type(value).__name__}"
        )
    if isinstance(value, str):
        _check_text(value, key)
    return value


def _optional_tags(data: dict[str, Any]) -> list[str]:
    tags = _optional(data, "tags", list, [])
    for tag in tags:
        if not isinstance(tag, str):
            raise EntryDecodeError(
                f"field 'tags' must contain strings, got {type(tag).__name__}"
            )
        _check_text(tag, "tags")
    return list(tags)


def _check_text(value: str, key: str) -> None:
    # JSON "\ud800" escapes decode to lone surrogates that cannot be written back
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EntryDecodeError(f"field '{key}' is not valid UTF-8 text") from e


def _optional_time(data: dict[str, Any], key: str) -> datetime | None:
    value = _optional(data, key, str, None)
    if value is None:
        return None
    return _parse_time(value, key)


def _parse_time(value: str, key: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise EntryDecodeError(f"field '{key}' is not a valid timestamp: {value!r}") from e
