"""Configuration management for MediaCat.

Settings come from built-in defaults, an optional JSON file, and
command-line overrides, in that order.  The resulting :class:`Config`
is read-only and handed to every component that needs it.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 3
DEFAULT_MAX_DEPTH = 64

DEFAULT_CONFIG: dict[str, Any] = {
    "media_root": "",  # Empty = classify only, never move
    "threshold": DEFAULT_THRESHOLD,  # more videos than this = show
    "dry_run": False,
    "chmod": "",  # octal mode, e.g. "755"
    "chown": "",  # owner, owner:group or :group
    "exclude_patterns": [],  # Glob patterns for top-level entries to skip
    "settle_seconds": 0,  # watch mode: wait for writes to stop (0 = off)
    "max_depth": DEFAULT_MAX_DEPTH,
    # ---- logging ----
    "log_level": "INFO",
    "log_file": "",
    "max_log_size_mb": 10,
    "log_backup_count": 3,
}

_CHMOD_RE = re.compile(r"^0?[0-7]{3}$|^[0-7]{4}$")
_CHOWN_RE = re.compile(r"^[\w.-]*(?::[\w.-]*)?$")


class ConfigError(ValueError):
    """Raised when a setting is missing or malformed."""


_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0", ""}


def _as_bool(key: str, value: Any) -> bool:
    """Accept real booleans, 0/1 and the usual yes/no spellings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    raise ConfigError(f"{key} must be true or false, not {value!r}")


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a JSON settings file and return the recognised keys."""
    try:
        with open(path, encoding="utf-8") as fh:
            stored = json.load(fh)
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc
    if not isinstance(stored, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    known = {}
    for key, value in stored.items():
        if key in DEFAULT_CONFIG:
            known[key] = value
        else:
            logger.warning("Ignoring unknown config key %r in %s", key, path)
    logger.debug("Configuration loaded from %s", path)
    return known


class Config:
    """Read-only settings shared by the classifier, relocator and driver."""

    def __init__(self, **overrides: Any):
        """Merge *overrides* over the defaults and validate the result."""
        unknown = set(overrides) - set(DEFAULT_CONFIG)
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(sorted(unknown))}")
        self._data: dict[str, Any] = {**DEFAULT_CONFIG, **overrides}
        self._validate()

    @classmethod
    def load(cls, path: Path | None = None, **overrides: Any) -> "Config":
        """Build a config from an optional JSON file plus *overrides*.

        Overrides whose value is ``None`` are treated as "not given" so
        that unset command-line flags do not mask file values.
        """
        data = load_config_file(path) if path else {}
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**data)

    def _validate(self) -> None:
        data = self._data
        try:
            data["threshold"] = int(data["threshold"])
            data["settle_seconds"] = int(data["settle_seconds"])
            data["max_depth"] = int(data["max_depth"])
            data["max_log_size_mb"] = max(1, int(data["max_log_size_mb"]))
            data["log_backup_count"] = max(0, int(data["log_backup_count"]))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Expected an integer setting: {exc}") from exc
        if data["threshold"] < 0:
            raise ConfigError("threshold must not be negative")
        if data["settle_seconds"] < 0:
            raise ConfigError("settle_seconds must not be negative")
        if data["max_depth"] < 1:
            raise ConfigError("max_depth must be at least 1")

        data["chmod"] = str(data["chmod"] or "").strip()
        if data["chmod"] and not _CHMOD_RE.match(data["chmod"]):
            raise ConfigError(f"Invalid chmod mode: {data['chmod']!r}")

        data["chown"] = str(data["chown"] or "").strip()
        if data["chown"] and (
            not _CHOWN_RE.match(data["chown"]) or data["chown"] == ":"
        ):
            raise ConfigError(f"Invalid chown owner: {data['chown']!r}")

        patterns = data["exclude_patterns"] or []
        if isinstance(patterns, str):
            patterns = [patterns]
        data["exclude_patterns"] = [p.strip() for p in patterns if p.strip()]

        data["dry_run"] = _as_bool("dry_run", data["dry_run"])
        data["media_root"] = str(data["media_root"] or "")
        if data["media_root"] and not Path(data["media_root"]).is_dir():
            raise ConfigError(
                f"Media root does not exist or is not a directory: "
                f"{data['media_root']}"
            )

    # ---- accessors ----

    @property
    def media_root(self) -> Path | None:
        """Return the destination library root, or None for classify-only."""
        root = self._data["media_root"]
        return Path(root) if root else None

    @property
    def threshold(self) -> int:
        """Return the video count above which a folder is a show."""
        return self._data["threshold"]

    @property
    def dry_run(self) -> bool:
        return self._data["dry_run"]

    @property
    def chmod_mode(self) -> int | None:
        """Return the recursive permission mode as an integer, if set."""
        mode = self._data["chmod"]
        return int(mode, 8) if mode else None

    @property
    def chmod(self) -> str:
        return self._data["chmod"]

    @property
    def chown(self) -> str:
        return self._data["chown"]

    @property
    def exclude_patterns(self) -> list[str]:
        return list(self._data["exclude_patterns"])

    @property
    def settle_seconds(self) -> int:
        return self._data["settle_seconds"]

    @property
    def max_depth(self) -> int:
        return self._data["max_depth"]

    @property
    def log_level(self) -> str:
        return str(self._data["log_level"] or "INFO")

    @property
    def log_file(self) -> str:
        return str(self._data["log_file"] or "")

    @property
    def max_log_size_mb(self) -> int:
        return self._data["max_log_size_mb"]

    @property
    def log_backup_count(self) -> int:
        return self._data["log_backup_count"]

    # ---- convenience ----

    def can_relocate(self) -> bool:
        """Return True when a media root is configured."""
        return bool(self._data["media_root"])

    def as_dict(self) -> dict[str, Any]:
        return dict(self._data)
