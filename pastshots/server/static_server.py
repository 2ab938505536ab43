"""Embedded static file server for the pages being captured."""

from __future__ import annotations

import functools
import logging
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

from pastshots.errors import SetupError

logger = logging.getLogger(__name__)


class _PageRequestHandler(SimpleHTTPRequestHandler):
    """Serves files under the root, hiding dotfiles and logging through ``logging``."""

    def send_head(self):
        if any(part.startswith(".") for part in self.path.split("?", 1)[0].split("/") if part):
            self.send_error(404, "File not found")
            return None
        return super().send_head()

    def log_message(self, format: str, *args) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class StaticServer:
    """Serves ``root`` on ``localhost:<port>`` from a background thread."""

    def __init__(self, root: str | Path = ".", port: int = 8081, host: str = "localhost"):
        self.root = Path(root)
        self.port = port
        self.host = host
        self._httpd: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    def start(self) -> "StaticServer":
        handler = functools.partial(_PageRequestHandler, directory=str(self.root))
        try:
            self._httpd = ThreadingHTTPServer((self.host, self.port), handler)
        except OSError as e:
            raise SetupError(f"Cannot start HTTP server on port {self.port}: {e}") from e
        # Port 0 picks a free port.
        self.port = self._httpd.server_address[1]
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)
        self._thread.start()
        logger.info("Serving %s at %s", self.root.resolve(), self.url)
        return self

    def close(self) -> None:
        if self._httpd is None:
            return
        self._httpd.shutdown()
        self._httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._httpd = None
        self._thread = None
        logger.debug("HTTP server stopped")

    def __enter__(self) -> "StaticServer":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
