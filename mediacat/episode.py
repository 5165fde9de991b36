"""Season/episode detection for names like ``the.office.s02e05.mkv``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from mediacat.classifier import MediaType, classify_extension, extension_of

logger = logging.getLogger(__name__)

EPISODE_RE = re.compile(r"S(\d{2})E(\d{2})", re.IGNORECASE)


@dataclass(frozen=True)
class EpisodeMetadata:
    """Season, episode and show name parsed from one file name."""

    season: str
    episode: str
    show_name: str


def _title(words: str) -> str:
    # Capitalise the first letter of each word, leave the rest alone
    return " ".join(word[:1].upper() + word[1:] for word in words.split())


def detect_episode(name: str) -> EpisodeMetadata | None:
    """Parse *name* for an ``SxxEyy`` marker.

    The show name is whatever precedes the marker with dots removed and
    each word capitalised.  Names whose show name would be empty are not
    episodes.
    """
    match = EPISODE_RE.search(name)
    if not match:
        return None
    prefix = name[: match.start()].replace(".", " ")
    show_name = _title(prefix.strip(" _-"))
    if not show_name:
        logger.debug("Episode marker in %r but no show name", name)
        return None
    return EpisodeMetadata(
        season=f"S{match.group(1)}",
        episode=f"E{match.group(2)}",
        show_name=show_name,
    )


def find_episode_file(path: Path) -> Path | None:
    """Return the single file to relocate for an episode candidate.

    A file is returned as is.  For a folder, the first video (by name)
    carrying an episode marker wins, otherwise the first video at all.
    """
    if not path.is_dir():
        return path
    videos = []
    for root, dirs, files in os.walk(path):
        dirs.sort()
        for name in sorted(files):
            if classify_extension(extension_of(name)) is MediaType.VIDEO:
                videos.append(Path(root) / name)
    for video in videos:
        if EPISODE_RE.search(video.name):
            return video
    return videos[0] if videos else None
