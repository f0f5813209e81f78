"""Development server for Folio.

Serves the built site and rebuilds it whenever a source file changes:
- A ThreadingHTTPServer serves the output directory on its own thread.
- A watchdog observer watches the source directories recursively.
- The main thread waits for SIGINT or SIGTERM and then shuts both down.

Rebuilds are written to a staging directory and swapped into place only when
they succeed, so a broken template never takes down the site being served.

Key classes:
- DevServer: Main class for running the development server.
- _SiteHandler: HTTP request handler that logs through ``folio.server``.
- _ChangeHandler: File system event handler for triggering rebuilds.
"""

from __future__ import annotations

import functools
import logging
import os
import shutil
import signal
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import Builder
from .config import Config

SHUTDOWN_GRACE_SECONDS = 5

server_log = logging.getLogger("folio.server")
watcher_log = logging.getLogger("folio.watcher")


class _SiteHandler(SimpleHTTPRequestHandler):
    """Static file handler for the output directory."""

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def log_request(self, code="-", size="-"):
        status = int(code) if isinstance(code, int) else 0
        server_log.info("%s %r %d", self.command, self.path, status)

    def log_message(self, format, *args):
        server_log.debug(format, *args)


class DevServer:
    """Development server with rebuild-on-change.

    Attributes:
        config: Site configuration.
        port: Port for the HTTP server.
        builder: Builder shared by the initial build and every rebuild.
        output_dir: Directory being served.
    """

    def __init__(
        self,
        config: Config,
        port: int = 3000,
        builder: Builder | None = None,
        host: str = "",
    ):
        self.config = config
        self.port = port
        self.host = host
        self.builder = builder or Builder(config)
        self.output_dir = config.output_dir
        self._staging_dir = self.output_dir.with_name(self.output_dir.name + ".staging")
        self._retired_dir = self.output_dir.with_name(self.output_dir.name + ".old")
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._observer: Observer | None = None
        self._httpd: ThreadingHTTPServer | None = None
        self._http_thread: threading.Thread | None = None

    def start(self) -> None:  # pragma: no cover - integration path
        """Build once, then serve and watch until a shutdown signal arrives.

        Raises:
            BuildError: If the initial build fails.
        """
        self._build_and_activate()
        self._install_signal_handlers()
        self._start_http()
        self._start_watcher()
        server_log.info("Serving %s at http://localhost:%d", self.output_dir, self.port)
        self._stop_event.wait()
        self.stop()

    def request_stop(self, *_args) -> None:
        """Signal handler: wake the main thread so it can shut down."""
        server_log.info("Shutting down...")
        self._stop_event.set()

    def stop(self) -> None:
        """Stop the watcher and HTTP server, waiting a bounded time for each."""
        if self._observer:
            self._observer.stop()
            self._observer.join(SHUTDOWN_GRACE_SECONDS)
            self._observer = None
        if self._httpd:
            httpd = self._httpd
            closer = threading.Thread(target=self._close_http, args=(httpd,), daemon=True)
            closer.start()
            closer.join(SHUTDOWN_GRACE_SECONDS)
            if closer.is_alive():
                server_log.warning(
                    "HTTP server did not stop within %ss", SHUTDOWN_GRACE_SECONDS
                )
            self._httpd = None

    def rebuild(self) -> bool:
        """Rebuild the site after a change.

        Failures are logged and the previous output keeps being served.

        Returns:
            True if the rebuild succeeded.
        """
        with self._lock:
            watcher_log.info("Change detected; rebuilding...")
            try:
                self._build_and_activate()
            except Exception as exc:
                watcher_log.error("Rebuild failed: %s", exc)
                return False
            return True

    def is_ignored(self, path: Path) -> bool:
        """Whether a changed path lives in one of the server's own output dirs."""
        for ignored in (self.output_dir, self._staging_dir, self._retired_dir):
            try:
                path.relative_to(ignored)
                return True
            except ValueError:
                pass
        return False

    def _build_and_activate(self) -> None:
        staging = self._prepare_staging_dir()
        self.builder.build(output_dir=staging)
        self._activate_staging(staging)

    def _prepare_staging_dir(self) -> Path:
        staging = self._staging_dir
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True, exist_ok=True)
        return staging

    def _activate_staging(self, staging: Path) -> None:
        target = self.output_dir
        if self._retired_dir.exists():
            shutil.rmtree(self._retired_dir)
        # os.replace refuses a non-empty directory target
        if target.exists():
            os.replace(target, self._retired_dir)
        os.replace(staging, target)
        if self._retired_dir.exists():
            shutil.rmtree(self._retired_dir)

    def _install_signal_handlers(self) -> None:  # pragma: no cover - integration path
        signal.signal(signal.SIGINT, self.request_stop)
        signal.signal(signal.SIGTERM, self.request_stop)

    def _start_http(self) -> None:  # pragma: no cover - integration path
        handler = functools.partial(_SiteHandler, directory=str(self.output_dir))
        self._httpd = ThreadingHTTPServer((self.host, self.port), handler)
        self._http_thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)
        self._http_thread.start()

    @staticmethod
    def _close_http(httpd: ThreadingHTTPServer) -> None:
        httpd.shutdown()
        httpd.server_close()

    def _start_watcher(self) -> None:
        handler = _ChangeHandler(self)
        observer = Observer()
        for folder in self.config.source_dirs:
            observer.schedule(handler, str(folder), recursive=True)
        observer.start()
        self._observer = observer


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server

    def on_modified(self, event):
        if event.is_directory:
            return
        path = Path(os.fsdecode(event.src_path))
        if self.server.is_ignored(path):
            return
        watcher_log.debug("Modified %s", path)
        self.server.rebuild()
