"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path
from typing import Any

import pytest
from PIL import Image

from pastshots.capture.target_resolver import ElementTarget
from pastshots.models.config import CaptureSettings, PastshotsConfig, ViewportConfig
from pastshots.models.job import PageJob


# ============================================================================
# Image helpers
# ============================================================================


def png_bytes(color=(255, 255, 255), size=(64, 48), draw=None) -> bytes:
    """Encode a solid-colour PNG, optionally painting ``draw`` = [(box, color)] on top."""
    image = Image.new("RGB", size, color)
    for box, fill in draw or []:
        image.paste(fill, box)
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def solid(color=(255, 255, 255), size=(64, 48)) -> Image.Image:
    return Image.new("RGB", size, color)


# ============================================================================
# Fake rendering session
# ============================================================================


class FakeSession:
    """Scripted stand-in for BrowserSession.

    ``frames`` are returned by successive viewport screenshots (the last one
    repeats); ``element_frame`` is returned for element-scoped screenshots.
    """

    def __init__(
        self,
        frames: list[bytes] | None = None,
        elements: dict[str, Any] | None = None,
        element_frame: bytes | None = None,
    ):
        self.frames = list(frames or [png_bytes()])
        self.elements = elements or {}
        self.element_frame = element_frame
        self.calls: list[tuple] = []
        self.closed = False
        self.fail_navigation: Exception | None = None
        self.fail_screenshot: Exception | None = None

    async def navigate(self, url: str) -> None:
        self.calls.append(("navigate", url))
        if self.fail_navigation:
            raise self.fail_navigation

    async def query(self, selector: str):
        self.calls.append(("query", selector))
        return self.elements.get(selector)

    async def screenshot(self, target) -> bytes:
        self.calls.append(("screenshot", repr(target)))
        if self.fail_screenshot:
            raise self.fail_screenshot
        if isinstance(target, ElementTarget) and self.element_frame is not None:
            return self.element_frame
        if len(self.frames) > 1:
            return self.frames.pop(0)
        return self.frames[0]

    async def settle(self, delay_ms: int) -> None:
        self.calls.append(("settle", delay_ms))

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def count(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)


# ============================================================================
# Configuration fixtures
# ============================================================================


@pytest.fixture
def settings() -> CaptureSettings:
    return CaptureSettings(selector="", tolerance=0, create_diff=True, settle_delay_ms=200)


@pytest.fixture
def pastshots_config() -> PastshotsConfig:
    return PastshotsConfig(
        output="out",
        serve="pages/*.html",
        port=0,
        browser="chrome",
        viewport_size=ViewportConfig(width=800, height=600),
        tolerance=2.5,
        create_diff=True,
    )


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "output"


@pytest.fixture
def home_job(output_dir: Path) -> PageJob:
    return PageJob(name="home", url="http://localhost:8081/home.html", output_dir=output_dir)
