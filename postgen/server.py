"""Development server for Postgen.

Serves the static assets directory and pushes refresh notifications to
connected browsers:
- An HTTP server serves ``public/`` on ``port``.
- A websocket server on ``ws_port`` keeps the set of connected clients.
- A watchdog observer watches ``public/`` and the page template; any change
  broadcasts ``{"type": "refresh"}`` to every connected client.

Changes do not trigger a rebuild; run ``postgen build`` to regenerate output.

Key classes:
- DevServer: Main class for running the development server.
- _ChangeHandler: File system event handler that triggers broadcasts.
"""

from __future__ import annotations

import asyncio
import functools
import json
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import BuildDirectories, load_config

REFRESH_MESSAGE = json.dumps({"type": "refresh"})


class _QuietHandler(SimpleHTTPRequestHandler):
    """Static file handler that disables browser caching."""

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()


class DevServer:
    """Development server with live reload notifications.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration.
        dirs: Resolved build directories.
        serve_dir: Directory served over HTTP.
        http_port: Port for HTTP server.
        ws_port: Port for WebSocket connections.
        _observer: File system observer for changes.
        _ws_clients: Set of connected WebSocket clients.
        _loop: Event loop for WebSocket handling.
    """

    def __init__(
        self,
        project_root: Path,
        http_port: int | None = None,
        ws_port: int | None = None,
    ):
        """Initialize the development server.

        Args:
            project_root: Root directory of the project.
            http_port: Optional override for HTTP port.
            ws_port: Optional override for the websocket port.
        """
        self.project_root = project_root
        self.config = load_config(project_root)
        self.dirs = BuildDirectories.resolve(project_root, self.config)
        self.serve_dir = self.dirs.public
        self.http_port = int(http_port or self.config.get("port", 8000))
        self.ws_port = int(
            ws_port if ws_port is not None else self.config.get("ws_port", 8001)
        )
        self._observer: Observer | None = None
        self._ws_clients: set = set()
        self._loop = asyncio.new_event_loop()

    def start(self) -> None:  # pragma: no cover - integration path
        threading.Thread(target=self._start_http, daemon=True).start()
        threading.Thread(target=self._start_ws, daemon=True).start()
        self._start_watcher()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
        self._loop.call_soon_threadsafe(self._loop.stop)

    def _start_http(self) -> None:  # pragma: no cover - integration path
        handler = functools.partial(_QuietHandler, directory=str(self.serve_dir))
        httpd = ThreadingHTTPServer(("", self.http_port), handler)
        print(f"Serving {self.serve_dir} at http://localhost:{self.http_port}")
        httpd.serve_forever()

    def _start_ws(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            print(f"WebSocket server failed to start (port {self.ws_port}): {exc}")
            return

    async def _run_ws_server(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self._ws_handler, "0.0.0.0", self.ws_port):
            print(f"Live reload listening on ws://localhost:{self.ws_port}")
            await asyncio.Future()  # Run forever

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    def notify(self) -> None:
        """Schedule a refresh broadcast on the websocket loop.

        Nothing is scheduled while the loop is not running, e.g. when the
        websocket server failed to bind.
        """
        if not self._loop.is_running():
            return
        asyncio.run_coroutine_threadsafe(self._async_broadcast(REFRESH_MESSAGE), self._loop)

    async def _async_broadcast(self, message: str):
        stale = set()
        for ws in list(self._ws_clients):
            try:
                await ws.send(message)
            except Exception:
                stale.add(ws)
        for ws in stale:
            self._ws_clients.discard(ws)

    def _start_watcher(self) -> None:
        handler = _ChangeHandler(self)
        observer = Observer()
        if self.serve_dir.exists():
            observer.schedule(handler, str(self.serve_dir), recursive=True)
        # Watchdog watches directories, so the template is watched via its parent.
        observer.schedule(handler, str(self.dirs.template.parent), recursive=False)
        observer.start()
        self._observer = observer

    def is_watched(self, path: Path) -> bool:
        """Return True if a change to ``path`` should refresh clients."""
        path = Path(path).resolve()
        if path == self.dirs.template.resolve():
            return True
        try:
            path.relative_to(self.serve_dir.resolve())
        except ValueError:
            return False
        return True


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory:
            return
        paths = [event.src_path, getattr(event, "dest_path", "")]
        if any(p and self.server.is_watched(Path(p)) for p in paths):
            self.server.notify()
