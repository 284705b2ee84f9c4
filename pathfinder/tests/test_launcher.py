import requests

import run_desktop


def test_port_and_backend_url_are_shared():
    port = run_desktop.backend_port({"PATHFINDER_PORT": "5001"})
    assert port == 5001
    env = run_desktop.child_env(port, {"PATH": "/usr/bin"})
    assert env["PATHFINDER_PORT"] == "5001"
    assert env["PATHFINDER_BACKEND_URL"] == "http://localhost:5001"
    assert env["PATH"] == "/usr/bin"


def test_default_port():
    assert run_desktop.backend_port({}) == 5000


def test_windows_backend_gets_its_own_process_group():
    assert "creationflags" in run_desktop.popen_kwargs("nt")
    assert run_desktop.popen_kwargs("posix") == {}


class FakeResponse:
    ok = True


def test_wait_for_backend_polls_until_it_answers(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        if len(calls) < 3:
            raise requests.ConnectionError("refused")
        return FakeResponse()

    monkeypatch.setattr(run_desktop.requests, "get", fake_get)
    monkeypatch.setattr(run_desktop.time, "sleep", lambda s: None)
    assert run_desktop.wait_for_backend("http://localhost:5001", timeout=5.0)
    assert calls == ["http://localhost:5001/api/runs"] * 3


def test_wait_for_backend_gives_up(monkeypatch):
    def refused(url, timeout):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(run_desktop.requests, "get", refused)
    monkeypatch.setattr(run_desktop.time, "sleep", lambda s: None)
    assert not run_desktop.wait_for_backend("http://localhost:5001", timeout=0.01, interval=0.001)
