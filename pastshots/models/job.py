"""Page job model — one capture unit per served page."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from pastshots.url_utils import page_name, page_url, relative_dir


class PageJob(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    output_dir: Path


def build_jobs(pages: list[str], host: str, output: str | Path, root: str = "") -> list[PageJob]:
    """Create one job per page, keeping the input order.

    The output directory of each job mirrors the page's directory relative
    to ``root``.
    """
    output = Path(output)
    return [
        PageJob(
            name=page_name(page),
            url=page_url(host, page),
            output_dir=output / relative_dir(page, root),
        )
        for page in pages
    ]
