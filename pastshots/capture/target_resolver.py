"""Capture target resolution — full viewport or a single selected element."""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class FullViewport:
    """Screenshot the whole viewport of the page."""

    selector = ""

    def __repr__(self) -> str:
        return "FullViewport()"


class ElementTarget:
    """Screenshot bounded to one element."""

    def __init__(self, selector: str, element: Any):
        self.selector = selector
        self.element = element

    def __repr__(self) -> str:
        return f"ElementTarget({self.selector!r})"


CaptureTarget = FullViewport | ElementTarget


async def resolve_target(session, selector: str) -> CaptureTarget:
    """Resolve ``selector`` to an element target, or the viewport when it matches nothing.

    ``session.query`` returns the first matching element or None; a missing
    element is never an error.
    """
    if not selector:
        logger.info("  Taking screenshot of viewport")
        return FullViewport()

    element = await session.query(selector)
    if element is None:
        logger.info("  Selector '%s' matched nothing, taking screenshot of viewport", selector)
        return FullViewport()

    logger.info("  Taking screenshot of element %s", selector)
    return ElementTarget(selector, element)
