"""Tests for page discovery, naming and job building."""

from pathlib import Path

import pytest

from pastshots.models.job import PageJob, build_jobs
from pastshots.url_utils import (
    discover_pages,
    page_name,
    page_url,
    relative_dir,
    serving_root,
)


class TestServingRoot:
    @pytest.mark.parametrize("pattern,root", [
        ("tests/visual/*.html", "tests/visual"),
        ("*.html", ""),
        ("pages/**/*.html", "pages"),
        ("site/page?.html", "site"),
        ("site/index.html", "site"),
    ])
    def test_prefix_before_wildcard(self, pattern, root):
        assert serving_root(pattern) == root


class TestNames:
    def test_page_name_strips_extension(self):
        assert page_name("tests/visual/home.html") == "home"

    def test_relative_dir_under_root(self):
        assert relative_dir("pages/docs/api/intro.html", "pages") == "docs/api"
        assert relative_dir("pages/home.html", "pages") == ""

    def test_relative_dir_without_root(self):
        assert relative_dir("home.html") == ""
        assert relative_dir("a/b.html") == "a"

    def test_page_url(self):
        assert page_url("http://localhost:8081/", "tests/home.html") == "http://localhost:8081/tests/home.html"
        assert page_url("http://localhost:8081", "/x.html") == "http://localhost:8081/x.html"

    def test_page_url_quotes_spaces(self):
        assert page_url("http://h/", "my page.html") == "http://h/my%20page.html"


class TestDiscoverPages:
    def test_sorted_files_only(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "pages" / "sub").mkdir(parents=True)
        for name in ("b.html", "a.html", "sub/c.html"):
            (tmp_path / "pages" / name).write_text("<html></html>")
        (tmp_path / "pages" / "dir.html").mkdir()

        assert discover_pages("pages/*.html") == ["pages/a.html", "pages/b.html"]
        assert discover_pages("pages/**/*.html") == [
            "pages/a.html", "pages/b.html", "pages/sub/c.html",
        ]

    def test_no_match(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert discover_pages("nothing/*.html") == []


class TestBuildJobs:
    def test_one_job_per_page_in_order(self):
        jobs = build_jobs(["home.html", "about.html"], "http://localhost:8081/", "out")
        assert [j.name for j in jobs] == ["home", "about"]
        assert jobs[0].url == "http://localhost:8081/home.html"
        assert jobs[0].output_dir == Path("out")

    def test_output_mirrors_relative_directory(self):
        jobs = build_jobs(["site/docs/intro.html"], "http://h/", "out", root="site")
        assert jobs[0].output_dir == Path("out/docs")
        assert jobs[0].url == "http://h/site/docs/intro.html"

    def test_jobs_are_immutable(self):
        job = PageJob(name="home", url="http://h/home.html", output_dir=Path("out"))
        with pytest.raises(Exception):
            job.name = "other"
