"""Scan and watch driver for MediaCat.

Feeds every discovered top-level entry through classification and,
when a media root is configured, relocation.  Everything runs on the
calling thread, one entry at a time.
"""

from __future__ import annotations

import fnmatch
import logging
import shutil
import threading
from collections.abc import Callable, Iterable
from pathlib import Path

from mediacat.classifier import Category, Classifier
from mediacat.config import Config
from mediacat.episode import detect_episode, find_episode_file
from mediacat.mutator import Mutator
from mediacat.relocator import RelocationTarget, Relocator
from mediacat import watcher
from mediacat.watcher import DirectoryEvent, wait_until_stable

logger = logging.getLogger(__name__)


class MediaCat:
    """Classifies candidates and sends them to the relocator.

    Parameters
    ----------
    config : Config
        Startup settings; never changed afterwards.
    mutator : Mutator, optional
        Filesystem backend for the relocator.  Defaults to the real one,
        or the logging-only one when ``config.dry_run`` is set.
    subscribe : callable, optional
        Factory returning a started event stream for a folder.  Defaults
        to :func:`mediacat.watcher.subscribe`.
    """

    def __init__(
        self,
        config: Config,
        mutator: Mutator | None = None,
        subscribe: Callable[[Path], Iterable[DirectoryEvent]] | None = None,
    ):
        self.config = config
        self.classifier = Classifier(config.threshold, config.max_depth)
        self.relocator = (
            Relocator(config, mutator) if config.can_relocate() else None
        )
        self._subscribe = subscribe or watcher.subscribe
        self._events: Iterable[DirectoryEvent] | None = None
        self._stopping = threading.Event()

    # ---- pipeline ----

    def categorize(self, path: Path) -> RelocationTarget | None:
        """Classify *path* and relocate it.

        Returns the relocation target, or None when the entry was skipped
        or no media root is configured.  Move failures propagate.
        """
        category = self.classifier.classify(path)
        if category is None:
            logger.warning("Could not classify %s: no media files found", path)
            return None
        logger.info("%s is a %s", path.name, category.value)

        if self.relocator is None:
            return None

        if category is Category.MOVIE:
            episode = detect_episode(path.name)
            if episode is not None:
                episode_file = find_episode_file(path)
                if episode_file is not None:
                    logger.info(
                        "%s is %s %s%s",
                        path.name,
                        episode.show_name,
                        episode.season,
                        episode.episode,
                    )
                    return self.relocator.relocate_episode(episode_file, episode)
                logger.debug("No video file to relocate as episode in %s", path)
        return self.relocator.relocate(path, category)

    def _is_excluded(self, path: Path) -> bool:
        name = path.name.lower()
        for pattern in self.config.exclude_patterns:
            if fnmatch.fnmatch(name, pattern.lower()):
                logger.debug("Excluding %s (matches %s)", path, pattern)
                return True
        return False

    # ---- commands ----

    def single(self, path: Path) -> RelocationTarget | None:
        """Classify and relocate exactly one entry."""
        return self.categorize(Path(path))

    def scan(self, folder: Path, keep_going: bool = False) -> list[RelocationTarget]:
        """Process every direct child of *folder*, sorted by name.

        With *keep_going*, a failed relocation is logged and the scan moves
        on to the next child instead of raising.  Stops early after
        :meth:`stop`.
        """
        folder = Path(folder)
        children = sorted(folder.iterdir(), key=lambda p: p.name)
        if not children:
            logger.info("%s is empty, nothing to do", folder)
            return []
        results = []
        for child in children:
            if self._stopping.is_set():
                logger.info("Scan of %s interrupted", folder)
                break
            if self._is_excluded(child):
                continue
            if keep_going:
                target = self._safe_categorize(child)
            else:
                target = self.categorize(child)
            if target is not None:
                results.append(target)
        logger.info("Scan of %s complete: %d relocated", folder, len(results))
        return results

    def watch(self, folder: Path) -> None:
        """Scan *folder*, then process new entries until :meth:`stop`.

        A failed relocation is logged and the loop moves on.
        """
        folder = Path(folder)
        self.scan(folder, keep_going=True)
        if self._stopping.is_set():
            return
        events = self._subscribe(folder)
        self._events = events
        try:
            if self._stopping.is_set():
                return
            for event in events:
                if self._stopping.is_set():
                    break
                self._handle_event(folder, event)
        finally:
            stop = getattr(events, "stop", None)
            if stop is not None:
                stop()
            self._events = None

    def stop(self) -> None:
        """End a running :meth:`watch` or :meth:`scan`."""
        self._stopping.set()
        stop = getattr(self._events, "stop", None)
        if stop is not None:
            stop()

    def _handle_event(self, folder: Path, event: DirectoryEvent) -> None:
        path = event.path
        if path.parent != folder:
            logger.debug("Ignoring %s event outside %s: %s", event.kind, folder, path)
            return
        if self._is_excluded(path):
            return
        if not wait_until_stable(
            path, self.config.settle_seconds, stop=self._stopping
        ):
            logger.debug("Ignoring %s event for vanished %s", event.kind, path)
            return
        logger.debug("Processing %s event for %s", event.kind, path)
        self._safe_categorize(path)

    def _safe_categorize(self, path: Path) -> RelocationTarget | None:
        try:
            return self.categorize(path)
        except (OSError, shutil.Error) as exc:
            logger.error("Failed to relocate %s: %s", path, exc)
            return None
