"""PNG codec — decodes screenshots and writes optimized, deterministic PNGs."""

from __future__ import annotations

import io
import logging
import os
import tempfile
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from pastshots.errors import CodecError

logger = logging.getLogger(__name__)


class RasterImage:
    """A captured screenshot: its encoded bytes and the decoded image."""

    def __init__(self, data: bytes, image: Image.Image):
        self.data = data
        self.image = image

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size


def decode(data: bytes) -> RasterImage:
    """Decode encoded image bytes into a RasterImage."""
    if not data:
        raise CodecError("Empty image data")
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise CodecError(f"Cannot decode image: {e}") from e
    return RasterImage(data, image)


def load(path: str | Path) -> RasterImage:
    """Read and decode an image file."""
    return decode(Path(path).read_bytes())


def from_image(image: Image.Image) -> RasterImage:
    """Wrap an in-memory Pillow image, e.g. a rendered diff."""
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return RasterImage(buf.getvalue(), image)


def _optimize(image: Image.Image) -> bytes:
    # A fresh image carries no text/ICC/time chunks, so equal pixels give equal bytes.
    clean = Image.frombytes(image.mode, image.size, image.tobytes())
    params = {}
    if image.mode == "P":
        clean.putpalette(image.getpalette())
    if "transparency" in image.info:
        params["transparency"] = image.info["transparency"]
    buf = io.BytesIO()
    clean.save(buf, format="PNG", optimize=True, **params)
    return buf.getvalue()


def encode(raster: RasterImage) -> bytes:
    """Losslessly re-encode as an optimized PNG.

    Falls back to the original bytes when optimization fails; raises
    CodecError if neither yields a usable image.
    """
    try:
        optimized = _optimize(raster.image)
        if optimized:
            return optimized
        logger.warning("PNG optimization produced no data, keeping original encoding")
    except (OSError, ValueError) as e:
        logger.warning("PNG optimization failed (%s), keeping original encoding", e)

    if not raster.data:
        raise CodecError("Nothing to write: optimization failed and no original data")
    try:
        with Image.open(io.BytesIO(raster.data)) as check:
            check.verify()
    except (UnidentifiedImageError, OSError) as e:
        raise CodecError(f"Original image data is not a valid image: {e}") from e
    return raster.data


def write_png(path: str | Path, raster: RasterImage) -> Path:
    """Encode and write ``raster`` to ``path`` atomically."""
    path = Path(path)
    data = encode(raster)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    logger.debug("Wrote %s (%d bytes)", path, len(data))
    return path
