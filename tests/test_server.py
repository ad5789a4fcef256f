import asyncio
import json
from pathlib import Path

from postgen.server import REFRESH_MESSAGE, DevServer, _ChangeHandler


class DummyEvent:
    def __init__(self, path, is_directory=False, dest_path=""):
        self.src_path = path
        self.is_directory = is_directory
        self.dest_path = dest_path


def test_refresh_message_shape():
    assert json.loads(REFRESH_MESSAGE) == {"type": "refresh"}


def test_dev_server_defaults_and_overrides(tmp_path):
    server = DevServer(tmp_path)
    assert server.http_port == 8000
    assert server.ws_port == 8001
    assert server.serve_dir == tmp_path.resolve() / "public"

    explicit = DevServer(tmp_path, http_port=5055, ws_port=6000)
    assert explicit.http_port == 5055
    assert explicit.ws_port == 6000

    (tmp_path / "postgen.yaml").write_text("port: 9000\nws_port: 9001\n", encoding="utf-8")
    configured = DevServer(tmp_path)
    assert configured.http_port == 9000
    assert configured.ws_port == 9001


def test_is_watched(tmp_path):
    server = DevServer(tmp_path)
    assert server.is_watched(tmp_path / "template.html")
    assert server.is_watched(tmp_path / "public" / "css" / "main.css")
    assert not server.is_watched(tmp_path / "posts" / "hello" / "index.md")
    assert not server.is_watched(tmp_path / "build" / "index.html")


def test_change_handler_notifies_for_watched_paths(tmp_path):
    server = DevServer(tmp_path)
    calls = []
    server.notify = lambda: calls.append("refresh")
    handler = _ChangeHandler(server)

    handler.on_any_event(DummyEvent(str(tmp_path / "posts" / "a.md")))
    handler.on_any_event(DummyEvent(str(tmp_path / "public"), is_directory=True))
    assert calls == []

    handler.on_any_event(DummyEvent(str(tmp_path / "template.html")))
    handler.on_any_event(DummyEvent(str(tmp_path / "public" / "app.js")))
    handler.on_any_event(
        DummyEvent(str(tmp_path / "tmp.swp"), dest_path=str(tmp_path / "template.html"))
    )
    assert calls == ["refresh", "refresh", "refresh"]


def test_async_broadcast_drops_stale_clients():
    server = DevServer(Path("."))

    class GoodWS:
        def __init__(self):
            self.messages = []

        async def send(self, msg):
            self.messages.append(msg)

    class BadWS:
        async def send(self, msg):
            raise RuntimeError("closed")

    good = GoodWS()
    bad = BadWS()
    server._ws_clients = {good, bad}
    asyncio.run(server._async_broadcast(REFRESH_MESSAGE))
    assert good.messages == [REFRESH_MESSAGE]
    assert server._ws_clients == {good}


def test_ws_handler_tracks_connection_lifecycle():
    server = DevServer(Path("."))
    seen = {}

    class DummyWS:
        async def wait_closed(self):
            seen["connected"] = ws in server._ws_clients

    ws = DummyWS()
    asyncio.run(server._ws_handler(ws))
    assert seen["connected"] is True
    assert ws not in server._ws_clients


def test_notify_schedules_broadcast(monkeypatch):
    server = DevServer(Path("."))
    called = {}

    def fake_runner(coro, loop):
        called["loop"] = loop
        new_loop = asyncio.new_event_loop()
        try:
            return new_loop.run_until_complete(coro)
        finally:
            new_loop.close()

    monkeypatch.setattr(server._loop, "is_running", lambda: True)
    monkeypatch.setattr("postgen.server.asyncio.run_coroutine_threadsafe", fake_runner)
    server.notify()
    assert called["loop"] is server._loop


def test_ws_start_failure(monkeypatch, tmp_path, capsys):
    server = DevServer(tmp_path, ws_port=5057)

    async def fake_run():
        raise OSError("bind error")

    monkeypatch.setattr(server, "_run_ws_server", fake_run)
    server._start_ws()
    out = capsys.readouterr().out
    assert "failed to start" in out
    assert "5057" in out


def test_stop_stops_observer(tmp_path):
    server = DevServer(tmp_path)

    class DummyObserver:
        def __init__(self):
            self.calls = []

        def stop(self):
            self.calls.append("stop")

        def join(self):
            self.calls.append("join")

    observer = DummyObserver()
    server._observer = observer
    server.stop()
    assert observer.calls == ["stop", "join"]


def test_start_watcher_schedules_public_and_template(monkeypatch, tmp_path):
    (tmp_path / "public").mkdir()
    scheduled = []

    class DummyObserver:
        def schedule(self, handler, path, recursive=False):
            scheduled.append((path, recursive))

        def start(self):
            scheduled.append("started")

    monkeypatch.setattr("postgen.server.Observer", DummyObserver)
    server = DevServer(tmp_path)
    server._start_watcher()
    assert scheduled == [
        (str(tmp_path.resolve() / "public"), True),
        (str(tmp_path.resolve()), False),
        "started",
    ]


def test_notify_skips_when_loop_not_running(monkeypatch):
    server = DevServer(Path("."))
    calls = []
    monkeypatch.setattr(
        "postgen.server.asyncio.run_coroutine_threadsafe",
        lambda coro, loop: calls.append(coro),
    )
    server.notify()
    assert calls == []
    assert not server._loop.is_running()
