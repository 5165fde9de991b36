"""Moves classified media into the library layout.

Flat categories land in ``{root}/{category}s/``; episodes land in
``{root}/shows/{show name}/{season}/``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from mediacat.classifier import Category
from mediacat.config import Config
from mediacat.episode import EpisodeMetadata
from mediacat.mutator import DryRunMutator, LocalMutator, Mutator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelocationTarget:
    """Where a candidate went (or would go, in a dry run)."""

    source: Path
    directory: Path
    destination: Path
    category: Category
    episode: EpisodeMetadata | None = None


class Relocator:
    """Plans and performs moves below the configured media root."""

    def __init__(self, config: Config, mutator: Mutator | None = None):
        if config.media_root is None:
            raise ValueError("Relocator needs a media root")
        self.config = config
        self.root = config.media_root
        if mutator is None:
            mutator = DryRunMutator() if config.dry_run else LocalMutator()
        self.mutator = mutator

    def plan(
        self,
        path: Path,
        category: Category,
        episode: EpisodeMetadata | None = None,
    ) -> RelocationTarget:
        """Compute the destination of *path* without touching anything."""
        if episode is None:
            directory = self.root / category.bucket
        else:
            directory = (
                self.root / Category.SHOW.bucket / episode.show_name / episode.season
            )
        return RelocationTarget(
            source=path,
            directory=directory,
            destination=directory / path.name,
            category=category,
            episode=episode,
        )

    def relocate(self, path: Path, category: Category) -> RelocationTarget:
        """Move *path* into its category bucket."""
        return self._execute(self.plan(path, category))

    def relocate_episode(
        self, path: Path, episode: EpisodeMetadata
    ) -> RelocationTarget:
        """Move the single episode file *path* into its show/season folder."""
        return self._execute(self.plan(path, Category.SHOW, episode))

    def _execute(self, target: RelocationTarget) -> RelocationTarget:
        mutator = self.mutator
        if not mutator.exists(target.directory):
            mutator.mkdir(target.directory)
        if mutator.exists(target.destination):
            raise FileExistsError(
                f"Destination already exists: {target.destination}"
            )
        mutator.move(target.source, target.destination)
        if not self.config.dry_run:
            logger.info("Moved %s -> %s", target.source, target.destination)

        mode = self.config.chmod_mode
        if mode is not None:
            mutator.chmod(target.destination, mode)
        if self.config.chown:
            mutator.chown(target.destination, self.config.chown)
        return target
