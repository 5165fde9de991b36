"""Media classification for MediaCat.

Every file below a candidate folder is tagged with a coarse
:class:`MediaType` from its extension.  The most frequent tag, ignoring
pictures and text, decides the folder's :class:`Category`.
"""

from __future__ import annotations

import enum
import logging
import os
from collections import Counter
from collections.abc import Iterator, Mapping
from pathlib import Path

from mediacat.config import DEFAULT_MAX_DEPTH, DEFAULT_THRESHOLD

logger = logging.getLogger(__name__)


class MediaType(enum.Enum):
    """Per-file tag.  Declaration order is the tie-break order."""

    VIDEO = "video"
    PICTURE = "picture"
    AUDIO = "audio"
    BOOK = "book"
    TEXT = "text"


class Category(enum.Enum):
    """Final label of a candidate; its value names the library bucket."""

    SHOW = "show"
    MOVIE = "movie"
    AUDIOBOOK = "audiobook"
    BOOK = "book"
    PICTURE = "picture"
    TEXT = "text"

    @property
    def bucket(self) -> str:
        """Return the library folder name, e.g. ``movies``."""
        return f"{self.value}s"


EXTENSIONS: dict[str, MediaType] = {
    "mp4": MediaType.VIDEO,
    "mov": MediaType.VIDEO,
    "mkv": MediaType.VIDEO,
    "jpg": MediaType.PICTURE,
    "jpeg": MediaType.PICTURE,
    "gif": MediaType.PICTURE,
    "mp3": MediaType.AUDIO,
    "m4b": MediaType.AUDIO,
    "pdf": MediaType.BOOK,
}

# Never decide a folder's category on their own
EXCLUDED: frozenset[MediaType] = frozenset({MediaType.PICTURE, MediaType.TEXT})

_ORDER = {media_type: index for index, media_type in enumerate(MediaType)}


def classify_extension(ext: str) -> MediaType:
    """Map a lowercase extension (without dot) to its media type."""
    return EXTENSIONS.get(ext, MediaType.TEXT)


def extension_of(name: str) -> str:
    """Return the lowercase text after the last dot of *name*, or ``""``."""
    _, dot, ext = name.rpartition(".")
    return ext.lower() if dot else ""


def walk(path: str | os.PathLike, max_depth: int = DEFAULT_MAX_DEPTH) -> Iterator[MediaType]:
    """Yield the media type of every file at or below *path*.

    Unreadable folders, symlink cycles and folders nested deeper than
    *max_depth* are logged and skipped.
    """
    path = Path(path)
    if not path.is_dir():
        yield classify_extension(extension_of(path.name))
        return
    yield from _walk_dir(path, 0, max_depth, set())


def _walk_dir(
    directory: Path, depth: int, max_depth: int, seen: set[str]
) -> Iterator[MediaType]:
    real = os.path.realpath(directory)
    if real in seen:
        logger.warning("Skipping %s: directory cycle", directory)
        return
    if depth >= max_depth:
        logger.warning("Skipping %s: nested deeper than %d", directory, max_depth)
        return
    seen.add(real)
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except OSError as exc:
        logger.warning("Cannot list %s: %s", directory, exc)
        return
    for entry in entries:
        try:
            is_dir = entry.is_dir()
        except OSError:
            is_dir = False
        if is_dir:
            yield from _walk_dir(Path(entry.path), depth + 1, max_depth, seen)
        else:
            media_type = classify_extension(extension_of(entry.name))
            logger.debug("%s -> %s", entry.path, media_type.value)
            yield media_type


def category_for(media_type: MediaType, count: int, threshold: int) -> Category:
    """Turn the winning media type and its count into a category."""
    if media_type is MediaType.VIDEO:
        return Category.SHOW if count > threshold else Category.MOVIE
    if media_type is MediaType.AUDIO:
        return Category.AUDIOBOOK
    return Category(media_type.value)


def reduce_counts(
    counts: Mapping[MediaType, int], threshold: int = DEFAULT_THRESHOLD
) -> Category | None:
    """Pick the category for a frequency table of media types.

    Returns None when nothing but pictures and text were counted.
    """
    candidates = [
        (media_type, count)
        for media_type, count in counts.items()
        if media_type not in EXCLUDED and count > 0
    ]
    if not candidates:
        return None
    winner, count = min(candidates, key=lambda item: (-item[1], _ORDER[item[0]]))
    return category_for(winner, count, threshold)


class Classifier:
    """Classifies a candidate path using the configured show threshold."""

    def __init__(self, threshold: int = DEFAULT_THRESHOLD, max_depth: int = DEFAULT_MAX_DEPTH):
        self.threshold = threshold
        self.max_depth = max_depth

    def count(self, path: str | os.PathLike) -> Counter[MediaType]:
        """Return how many files of each media type live under *path*."""
        return Counter(walk(path, self.max_depth))

    def classify(self, path: str | os.PathLike) -> Category | None:
        """Return the category of *path*, or None if it has no media."""
        counts = self.count(path)
        logger.debug(
            "Counts for %s: %s",
            path,
            ", ".join(f"{t.value}={n}" for t, n in counts.items()) or "none",
        )
        return reduce_counts(counts, self.threshold)
