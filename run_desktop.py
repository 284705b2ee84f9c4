"""Launcher script to run the A* backend and pygame visualizer in one go.

Usage:
    python run_desktop.py

It spawns the backend in a child process on PATHFINDER_PORT (default 5000),
polls /api/runs until the backend answers, then starts the Pygame visualizer
in the foreground pointed at that port. When the visualizer window is closed,
the backend process is terminated.
"""

import subprocess
import sys
import time
import os
import signal
from pathlib import Path

import requests

ROOT = Path(__file__).parent.resolve()
DEFAULT_PORT = 5000


def backend_port(environ=None) -> int:
    environ = os.environ if environ is None else environ
    return int(environ.get("PATHFINDER_PORT", DEFAULT_PORT))


def child_env(port: int, environ=None) -> dict:
    """Environment shared by backend and visualizer so both agree on the port."""
    env = dict(os.environ if environ is None else environ)
    env["PATHFINDER_PORT"] = str(port)
    env["PATHFINDER_BACKEND_URL"] = f"http://localhost:{port}"
    return env


def popen_kwargs(os_name: str = os.name) -> dict:
    # CTRL_BREAK_EVENT only reaches children started in their own process group
    if os_name == "nt":
        return {"creationflags": getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0x200)}
    return {}


def wait_for_backend(url: str, timeout: float = 15.0, interval: float = 0.25) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            if requests.get(f"{url}/api/runs", timeout=interval).ok:
                return True
        except requests.RequestException:
            pass  # not listening yet
        time.sleep(interval)
    return False


def main():
    port = backend_port()
    env = child_env(port)
    url = env["PATHFINDER_BACKEND_URL"]

    backend_cmd = [sys.executable, "-m", "pathfinder.app"]
    print("Starting backend:", " ".join(backend_cmd), "on port", port)
    backend_proc = subprocess.Popen(backend_cmd, cwd=str(ROOT), env=env, **popen_kwargs())

    try:
        if not wait_for_backend(url):
            print("Backend did not answer at", url)
            return 1
        viz_cmd = [sys.executable, str(ROOT / "visualizations" / "astar_visualizer.py")]
        print("Launching A* visualizer...")
        return subprocess.call(viz_cmd, cwd=str(ROOT), env=env)
    finally:
        print("Shutting down backend...")
        if os.name == "nt":
            backend_proc.send_signal(signal.CTRL_BREAK_EVENT)
        else:
            backend_proc.terminate()
        try:
            backend_proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            backend_proc.kill()


if __name__ == "__main__":
    sys.exit(main())
