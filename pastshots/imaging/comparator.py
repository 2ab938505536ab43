"""Perceptual image comparison and diff rendering.

Pixels are compared in CIELAB space; the divergence of a pixel is its CIE76
colour difference (delta E) to the pixel at the same position in the other
image. Two images are equal when their largest per-pixel divergence is
within the tolerance, so tolerance 0 means exact pixel equality.

The default non-strict mode excuses anti-aliased pixels only, detected the
way pixelmatch/looks-same do it: the pixel sits on a brightness gradient
(it has both darker and brighter neighbours, and at most two neighbours of
equal brightness) and its darkest or brightest neighbour lies in a flat
area in both images.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from PIL import Image

from pastshots.errors import ComparisonError

logger = logging.getLogger(__name__)

HIGHLIGHT_COLOR = (255, 0, 255)

# sRGB (D65) -> XYZ
_RGB_TO_XYZ = np.array([
    [0.4124564, 0.3575761, 0.1804375],
    [0.2126729, 0.7151522, 0.0721750],
    [0.0193339, 0.1191920, 0.9503041],
])
_WHITE_D65 = np.array([0.95047, 1.0, 1.08883])
_EPSILON = 216 / 24389
_KAPPA = 24389 / 27

# YIQ luma weights, as in pixelmatch
_LUMA = np.array([0.29889531, 0.58662247, 0.11448223])

# 3x3 neighbour offsets (dy, dx), column by column
_OFFSETS = [(dy, dx) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if (dy, dx) != (0, 0)]


class ComparisonResult:
    """Outcome of comparing two images."""

    def __init__(self, equal: bool, divergence: float, differing_pixels: int, tolerance: float):
        self.equal = equal
        self.divergence = divergence
        self.differing_pixels = differing_pixels
        self.tolerance = tolerance

    def __repr__(self) -> str:
        return (f"ComparisonResult(equal={self.equal}, divergence={self.divergence:.3f}, "
                f"differing_pixels={self.differing_pixels})")


def _to_image(image) -> Image.Image:
    # Accepts a Pillow image or anything exposing one as ``.image`` (RasterImage).
    return getattr(image, "image", image)


def _to_rgb(image) -> np.ndarray:
    return np.asarray(_to_image(image).convert("RGB"), dtype=np.int16)


def _to_lab(rgb: np.ndarray) -> np.ndarray:
    rgb = rgb.astype(np.float64) / 255.0
    linear = np.where(rgb <= 0.04045, rgb / 12.92, ((rgb + 0.055) / 1.055) ** 2.4)
    xyz = (linear @ _RGB_TO_XYZ.T) / _WHITE_D65
    f = np.where(xyz > _EPSILON, np.cbrt(xyz), (_KAPPA * xyz + 16) / 116)
    lab = np.empty_like(f)
    lab[..., 0] = 116 * f[..., 1] - 16
    lab[..., 1] = 500 * (f[..., 0] - f[..., 1])
    lab[..., 2] = 200 * (f[..., 1] - f[..., 2])
    return lab


def _delta_e(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.sqrt(np.sum((a - b) ** 2, axis=-1))


def _shifted(arr: np.ndarray, dy: int, dx: int, fill) -> np.ndarray:
    """``arr[y + dy, x + dx]`` at every (y, x), ``fill`` where that falls outside."""
    h, w = arr.shape[:2]
    out = np.full_like(arr, fill)
    dst_y = slice(max(0, -dy), h - max(0, dy))
    dst_x = slice(max(0, -dx), w - max(0, dx))
    src_y = slice(max(0, dy), h + min(0, dy))
    src_x = slice(max(0, dx), w + min(0, dx))
    out[dst_y, dst_x] = arr[src_y, src_x]
    return out


def _edge_count(h: int, w: int) -> np.ndarray:
    # Border pixels start with one "equal" neighbour, like pixelmatch.
    count = np.zeros((h, w), dtype=np.int64)
    count[0, :] = count[-1, :] = 1
    count[:, 0] = count[:, -1] = 1
    return count


def _has_many_siblings(rgb: np.ndarray) -> np.ndarray:
    """Pixels with three or more identically coloured neighbours."""
    count = _edge_count(*rgb.shape[:2])
    for dy, dx in _OFFSETS:
        count += np.all(_shifted(rgb, dy, dx, -1) == rgb, axis=-1)
    return count > 2


def _antialiased(rgb: np.ndarray, flat: np.ndarray) -> np.ndarray:
    """Pixels of ``rgb`` that look like anti-aliasing.

    ``flat`` marks positions with many siblings in both images.
    """
    h, w = rgb.shape[:2]
    luma = rgb.astype(np.float64) @ _LUMA
    inside = np.ones((h, w), dtype=bool)

    equal = _edge_count(h, w)
    darkest = np.zeros((h, w))
    brightest = np.zeros((h, w))
    flat_at_darkest = np.zeros((h, w), dtype=bool)
    flat_at_brightest = np.zeros((h, w), dtype=bool)
    for dy, dx in _OFFSETS:
        valid = _shifted(inside, dy, dx, False)
        delta = _shifted(luma, dy, dx, 0.0) - luma
        neighbour_flat = _shifted(flat, dy, dx, False)
        equal += valid & (delta == 0)

        darker = valid & (delta < darkest)
        darkest[darker] = delta[darker]
        flat_at_darkest[darker] = neighbour_flat[darker]

        brighter = valid & (delta > brightest)
        brightest[brighter] = delta[brighter]
        flat_at_brightest[brighter] = neighbour_flat[brighter]

    return (equal <= 2) & (darkest < 0) & (brightest > 0) & (flat_at_darkest | flat_at_brightest)


def divergence_map(a, b, strict: bool = False) -> np.ndarray:
    """Per-pixel divergence between two equally sized images."""
    rgb_a, rgb_b = _to_rgb(a), _to_rgb(b)
    diff = _delta_e(_to_lab(rgb_a), _to_lab(rgb_b))
    if strict or not diff.any():
        return diff
    flat = _has_many_siblings(rgb_a) & _has_many_siblings(rgb_b)
    diff[_antialiased(rgb_a, flat) | _antialiased(rgb_b, flat)] = 0.0
    return diff


def measure(a, b, strict: bool = False) -> float:
    """Largest per-pixel divergence; infinite when the sizes differ."""
    img_a, img_b = _to_image(a), _to_image(b)
    if img_a.size != img_b.size:
        return math.inf
    if img_a.width == 0 or img_a.height == 0:
        return 0.0
    return float(divergence_map(img_a, img_b, strict).max())


def compare(a, b, tolerance: float = 0.0, strict: bool = False) -> ComparisonResult:
    """Decide whether two images are equal within ``tolerance``."""
    if tolerance < 0:
        raise ComparisonError(f"Tolerance must be >= 0, got {tolerance}")
    try:
        img_a, img_b = _to_image(a), _to_image(b)
        if img_a.size != img_b.size:
            logger.debug("Size mismatch: %s vs %s", img_a.size, img_b.size)
            return ComparisonResult(False, math.inf, max(img_a.width * img_a.height,
                                                          img_b.width * img_b.height), tolerance)
        if img_a.width == 0 or img_a.height == 0:
            return ComparisonResult(True, 0.0, 0, tolerance)
        diff = divergence_map(img_a, img_b, strict)
    except (OSError, ValueError, MemoryError) as e:
        raise ComparisonError(f"Image comparison failed: {e}") from e

    divergence = float(diff.max())
    differing = int(np.count_nonzero(diff > tolerance))
    return ComparisonResult(divergence <= tolerance, divergence, differing, tolerance)


def create_diff(current, reference, tolerance: float = 0.0, strict: bool = False) -> Image.Image:
    """Render ``reference`` with every divergent pixel painted HIGHLIGHT_COLOR.

    The canvas covers both images; area present in only one of them counts
    as divergent.
    """
    try:
        cur = _to_image(current).convert("RGB")
        ref = _to_image(reference).convert("RGB")
        width = max(cur.width, ref.width)
        height = max(cur.height, ref.height)

        canvas = np.empty((height, width, 3), dtype=np.uint8)
        canvas[...] = HIGHLIGHT_COLOR
        overlap_w = min(cur.width, ref.width)
        overlap_h = min(cur.height, ref.height)
        if overlap_w and overlap_h:
            box = (0, 0, overlap_w, overlap_h)
            ref_part = ref.crop(box)
            diff = divergence_map(cur.crop(box), ref_part, strict)
            region = np.asarray(ref_part, dtype=np.uint8).copy()
            region[diff > tolerance] = HIGHLIGHT_COLOR
            canvas[:overlap_h, :overlap_w] = region
        return Image.fromarray(canvas)
    except (OSError, ValueError, MemoryError) as e:
        raise ComparisonError(f"Diff generation failed: {e}") from e
