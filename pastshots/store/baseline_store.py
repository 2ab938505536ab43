"""Baseline store — one rolling baseline PNG per page plus timestamped diffs."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from pastshots.imaging import codec
from pastshots.imaging.codec import RasterImage

logger = logging.getLogger(__name__)


class BaselineStore:
    """Manages the baseline image and diff artifacts of a single page.

    Layout inside ``directory``::

        <name>.png                 current baseline
        <name>_diff_<unix_ms>.png  diff artifacts, never overwritten
    """

    def __init__(self, directory: Path, name: str):
        self.directory = Path(directory)
        self.name = name

    @property
    def baseline_path(self) -> Path:
        return self.directory / f"{self.name}.png"

    def diff_path(self, timestamp_ms: int) -> Path:
        return self.directory / f"{self.name}_diff_{timestamp_ms}.png"

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def has_baseline(self) -> bool:
        """Whether this page already has a baseline (i.e. this is not a first run)."""
        return self.baseline_path.is_file()

    def load_baseline(self) -> RasterImage:
        return codec.load(self.baseline_path)

    def write_baseline(self, raster: RasterImage) -> Path:
        """Create or overwrite the baseline with ``raster``."""
        path = codec.write_png(self.baseline_path, raster)
        logger.debug("Stored baseline for %s (%dx%d)", self.name, raster.width, raster.height)
        return path

    def write_diff(self, raster: RasterImage, timestamp_ms: int | None = None) -> Path:
        """Write a new diff artifact, bumping the timestamp past any existing file."""
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        path = self.diff_path(timestamp_ms)
        while path.exists():
            timestamp_ms += 1
            path = self.diff_path(timestamp_ms)
        return codec.write_png(path, raster)
