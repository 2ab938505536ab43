"""Capturer — screenshots each page and maintains its rolling baseline."""

from __future__ import annotations

import logging
import time

from pastshots.capture.target_resolver import CaptureTarget, resolve_target
from pastshots.errors import CaptureError, PastshotsError
from pastshots.imaging import codec, comparator
from pastshots.imaging.codec import RasterImage
from pastshots.models.config import CaptureSettings
from pastshots.models.job import PageJob
from pastshots.models.run_result import PageResult, RunResult
from pastshots.store.baseline_store import BaselineStore

logger = logging.getLogger(__name__)


class Capturer:
    """Runs page jobs one after another through a single rendering session.

    The session must provide ``navigate(url)``, ``query(selector)``,
    ``screenshot(target)`` and ``settle(delay_ms)``. Releasing it is the
    caller's job (see ``BrowserSession``).
    """

    def __init__(self, session, settings: CaptureSettings):
        self.session = session
        self.settings = settings

    async def run(self, jobs: list[PageJob]) -> RunResult:
        """Capture every job in order. The first error aborts the remaining jobs."""
        started_at = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        start_time = time.time()
        result = RunResult(started_at=started_at)

        for index, job in enumerate(jobs):
            logger.debug("Page [%d/%d]: %s", index + 1, len(jobs), job.name)
            result.pages.append(await self.capture_page(job))

        result.completed_at = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        result.duration_seconds = round(time.time() - start_time, 2)
        logger.info("Captured %d pages: %d created, %d unchanged, %d settled, %d changed",
                    len(result.pages), result.created, result.unchanged,
                    result.settled, result.changed)
        return result

    async def capture_page(self, job: PageJob) -> PageResult:
        store = BaselineStore(job.output_dir, job.name)
        store.ensure_directory()

        first_run = not store.has_baseline()
        logger.info("Loading %s...", job.url)
        try:
            await self.session.navigate(job.url)
            if first_run:
                # Late-rendering elements must exist before the selector is resolved.
                logger.info("  Get baseline image: %s", store.baseline_path)
                await self.session.settle(self.settings.settle_delay_ms)
            target = await resolve_target(self.session, self.settings.selector)
        except PastshotsError:
            raise
        except Exception as e:
            logger.error("Error loading %s: %s", job.url, e)
            raise CaptureError(job.url, f"navigation failed: {e}") from e

        if first_run:
            return await self._create_baseline(job, store, target)
        return await self._compare_with_baseline(job, store, target)

    async def _take(self, job: PageJob, target: CaptureTarget) -> RasterImage:
        try:
            data = await self.session.screenshot(target)
        except Exception as e:
            logger.error("Error capturing %s: %s", job.url, e)
            raise CaptureError(job.url, f"screenshot failed: {e}") from e
        return codec.decode(data)

    async def _create_baseline(
        self, job: PageJob, store: BaselineStore, target: CaptureTarget,
    ) -> PageResult:
        capture = await self._take(job, target)
        store.write_baseline(capture)
        return PageResult(
            name=job.name, url=job.url, outcome="created",
            baseline_path=str(store.baseline_path),
        )

    async def _compare_with_baseline(
        self, job: PageJob, store: BaselineStore, target: CaptureTarget,
    ) -> PageResult:
        baseline = store.load_baseline()
        tolerance = self.settings.tolerance
        strict = self.settings.strict

        capture = await self._take(job, target)
        first = comparator.compare(capture, baseline, tolerance, strict)
        if first.equal:
            logger.info("  No difference")
            return PageResult(
                name=job.name, url=job.url, outcome="unchanged",
                baseline_path=str(store.baseline_path), divergence=first.divergence,
            )

        # One retry: animations and late rendering often settle within the delay.
        logger.info("  Retry comparison after timeout of %dms ...", self.settings.settle_delay_ms)
        await self.session.settle(self.settings.settle_delay_ms)
        capture = await self._take(job, target)
        final = comparator.compare(capture, baseline, tolerance, strict)
        if final.equal:
            logger.info("  No difference after retry")
            return PageResult(
                name=job.name, url=job.url, outcome="settled",
                baseline_path=str(store.baseline_path), divergence=final.divergence,
            )

        logger.warning("  Difference found! %s: %d pixels beyond tolerance %.2f",
                       job.name, final.differing_pixels, tolerance)
        diff_path = None
        if self.settings.create_diff:
            logger.info("    Creating diff image")
            diff = comparator.create_diff(capture, baseline, tolerance, strict)
            diff_path = str(store.write_diff(codec.from_image(diff)))
            logger.info("    Diff written to %s", diff_path)
        store.write_baseline(capture)
        return PageResult(
            name=job.name, url=job.url, outcome="changed",
            baseline_path=str(store.baseline_path), diff_path=diff_path,
            divergence=final.divergence,
        )
