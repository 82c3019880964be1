"""Preprocessor settings from the book's ``[preprocessor.git]`` table.

User-wide defaults live in a JSON object under the platform config
directory; values from the book's table override them. Malformed values
fall back to defaults instead of failing the build.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

from .diff import DEFAULT_CONTEXT_LINES

logger = logging.getLogger(__name__)

APP_NAME = "mdbook-git"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
DEFAULT_MAX_WORKERS = 1


@dataclass(frozen=True)
class PreprocessorSettings:
    """Resolved settings for one build pass.

    ``repository`` is ``None`` when no usable repository path is configured,
    in which case chapters pass through unchanged.
    """

    repository: Path | None = None
    context_lines: int = DEFAULT_CONTEXT_LINES
    max_workers: int = DEFAULT_MAX_WORKERS


def load_config() -> dict[str, object]:
    """Load the user-level JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _coerce_int(value: object, default: int, minimum: int) -> int:
    """Accept plain integers ``>= minimum``; booleans and other types fall back."""
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        return default
    return value


def _pick(key: str, table: Mapping[str, object], user: Mapping[str, object], user_key: str) -> object:
    if key in table:
        return table[key]
    return user.get(user_key)


def resolve_repository(book_root: Path, raw_path: object) -> Path | None:
    """Resolve the table's ``path`` relative to the book root."""
    if not isinstance(raw_path, str) or not raw_path.strip():
        return None
    candidate = (Path(book_root) / raw_path.strip()).resolve()
    if not candidate.is_dir():
        logger.warning("configured repository path %s is not a directory", candidate)
        return None
    return candidate


def settings_from_mapping(book_root: Path, table: Mapping[str, object] | None) -> PreprocessorSettings:
    """Build settings from the host's preprocessor table and user defaults."""
    table = table or {}
    user = load_config()
    return PreprocessorSettings(
        repository=resolve_repository(book_root, table.get("path")),
        context_lines=_coerce_int(
            _pick("context-lines", table, user, "context_lines"),
            DEFAULT_CONTEXT_LINES,
            minimum=0,
        ),
        max_workers=_coerce_int(
            _pick("workers", table, user, "workers"),
            DEFAULT_MAX_WORKERS,
            minimum=1,
        ),
    )


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "PreprocessorSettings",
    "load_config",
    "resolve_repository",
    "settings_from_mapping",
]
