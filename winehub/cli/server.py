"""Run the WineHub API under uvicorn as a background service.

Usage:
    winehub-server start [--host HOST] [--port PORT] [--reload] [--foreground]
    winehub-server stop
    winehub-server restart [--host HOST] [--port PORT]
    winehub-server status [--port PORT]
"""

import argparse
import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import httpx

from winehub.config import settings

APP_PATH = "winehub.main:app"
STOP_TIMEOUT_SECONDS = 5.0


class ServerProcess:
    """Tracks a detached uvicorn process through a pid file."""

    def __init__(self, run_dir: Path = Path("data")):
        self.run_dir = run_dir
        self.pid_file = run_dir / "winehub.pid"
        self.log_file = run_dir / "winehub.log"

    def _alive(self, pid: int) -> bool:
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return False
        except PermissionError:
            # Exists but belongs to someone else
            return True
        return True

    def _recorded_pid(self) -> int | None:
        try:
            pid = int(self.pid_file.read_text().strip())
        except (FileNotFoundError, ValueError):
            return None
        if self._alive(pid):
            return pid
        self.pid_file.unlink(missing_ok=True)
        return None

    def _orphan_pid(self) -> int | None:
        """Look for a uvicorn process started without a pid file."""
        try:
            found = subprocess.run(
                ["pgrep", "-f", f"uvicorn {APP_PATH}"],
                capture_output=True,
                text=True,
            )
        except OSError:
            return None
        pids = found.stdout.split()
        return int(pids[0]) if found.returncode == 0 and pids else None

    @property
    def pid(self) -> int | None:
        return self._recorded_pid() or self._orphan_pid()

    def command(self, host: str, port: int, reload: bool) -> list[str]:
        cmd = [sys.executable, "-m", "uvicorn", APP_PATH, "--host", host, "--port", str(port)]
        workers = settings.config.server.workers
        if reload:
            cmd.append("--reload")
        elif workers > 1:
            cmd += ["--workers", str(workers)]
        return cmd

    def start(self, host: str, port: int, reload: bool = False, foreground: bool = False) -> bool:
        running = self.pid
        if running:
            print(f"WineHub is already running (PID: {running})")
            return False

        self.run_dir.mkdir(parents=True, exist_ok=True)
        settings.upload_dir.mkdir(parents=True, exist_ok=True)
        cmd = self.command(host, port, reload)
        print(f"Starting WineHub on http://{host}:{port} (database: {settings.mongodb_database})")

        if foreground:
            print("Press Ctrl+C to stop")
            try:
                subprocess.run(cmd)
            except KeyboardInterrupt:
                print("\nStopped")
            return True

        with self.log_file.open("w") as log:
            process = subprocess.Popen(
                cmd, stdout=log, stderr=subprocess.STDOUT, start_new_session=True
            )

        time.sleep(1)
        if process.poll() is not None:
            print(f"WineHub exited with code {process.returncode}, see {self.log_file}")
            return False

        self.pid_file.write_text(str(process.pid))
        print(f"WineHub started (PID: {process.pid}), logging to {self.log_file}")
        return True

    def stop(self) -> bool:
        pid = self.pid
        if not pid:
            print("WineHub is not running")
            return False

        print(f"Stopping WineHub (PID: {pid})")
        try:
            os.kill(pid, signal.SIGTERM)
            deadline = time.monotonic() + STOP_TIMEOUT_SECONDS
            while self._alive(pid) and time.monotonic() < deadline:
                time.sleep(0.25)
            if self._alive(pid):
                print("Still running after SIGTERM, sending SIGKILL")
                os.kill(pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except PermissionError:
            print(f"Not allowed to signal process {pid}")
            return False

        self.pid_file.unlink(missing_ok=True)
        print("WineHub stopped")
        return True

    def status(self, port: int) -> bool:
        pid = self.pid
        if not pid:
            print("WineHub is not running")
            return False

        print(f"WineHub is running (PID: {pid})")
        try:
            health = httpx.get(f"http://localhost:{port}/api/health", timeout=2).json()
        except (httpx.HTTPError, ValueError) as e:
            print(f"  Health check failed: {e}")
            return True
        print(f"  {health.get('message', 'unknown')} (version {health.get('version', '?')})")
        return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="winehub-server",
        description="Start, stop and inspect the WineHub API server.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    start = commands.add_parser("start", help="Start the server")
    restart = commands.add_parser("restart", help="Stop and start the server")
    status = commands.add_parser("status", help="Show whether the server is up")
    commands.add_parser("stop", help="Stop the server")

    for sub in (start, restart, status):
        sub.add_argument("--port", "-p", type=int, default=settings.port)
    for sub in (start, restart):
        sub.add_argument("--host", default=settings.host)
    start.add_argument("--reload", "-r", action="store_true", help="Reload on code changes")
    start.add_argument("--foreground", "-f", action="store_true", help="Do not detach")
    return parser


def main() -> int:
    args = build_parser().parse_args()
    server = ServerProcess()

    try:
        if args.command == "start":
            ok = server.start(args.host, args.port, reload=args.reload, foreground=args.foreground)
        elif args.command == "stop":
            ok = server.stop()
        elif args.command == "restart":
            server.stop()
            time.sleep(1)
            ok = server.start(args.host, args.port)
        else:
            ok = server.status(args.port)
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
