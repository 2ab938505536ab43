"""Run orchestrator — serves the pages, opens the browser and drives the capturer."""

from __future__ import annotations

import asyncio
import logging
import time

from pastshots.capture.capturer import Capturer
from pastshots.capture.session import BrowserSession
from pastshots.errors import SetupError
from pastshots.models.config import PastshotsConfig
from pastshots.models.job import PageJob, build_jobs
from pastshots.models.run_result import RunResult
from pastshots.server.static_server import StaticServer
from pastshots.url_utils import discover_pages, serving_root

logger = logging.getLogger(__name__)


class Orchestrator:
    """Coordinates one capture run from a fully resolved config."""

    def __init__(self, config: PastshotsConfig):
        self.config = config

    def run(self) -> RunResult:
        """Execute the complete serve → capture pipeline."""
        return asyncio.run(self._run())

    def build_jobs(self, host: str) -> list[PageJob]:
        if not self.config.serve:
            raise SetupError("No pages to capture: set 'serve' to a glob pattern, e.g. 'tests/visual/*.html'")
        pages = discover_pages(self.config.serve)
        if not pages:
            raise SetupError(f"No pages match '{self.config.serve}'")
        logger.debug("Discovered %d pages for '%s'", len(pages), self.config.serve)
        return build_jobs(pages, host, self.config.output, serving_root(self.config.serve))

    async def _run(self) -> RunResult:
        start = time.time()
        logger.info("=== Capturing %s into %s ===", self.config.serve, self.config.output)

        with StaticServer(".", self.config.port) as server:
            jobs = self.build_jobs(server.url)
            session = await BrowserSession.launch(
                self.config.browser, self.config.viewport_size, headless=self.config.headless,
            )
            async with session:
                capturer = Capturer(session, self.config.capture_settings())
                result = await capturer.run(jobs)

        logger.info("=== Run complete in %.1fs ===", time.time() - start)
        return result
