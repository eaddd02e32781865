"""Thin wrapper around an external command and its subprocess.

A :class:`Command` is an executable plus a fixed argument prefix. Each call
to :meth:`Command.process` returns a fresh :class:`Process` whose argument
list, stdin source and stdout sink can be adjusted before it is started.

Standard error is always delivered as a pipe; the caller that started the
process owns it.
"""

from __future__ import annotations

import logging
import shlex
import subprocess  # nosec B404 - subprocess is required for ffmpeg invocation
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import IO, Any, BinaryIO

from ffpipe.exceptions import LaunchError

logger = logging.getLogger(__name__)

_PUMP_CHUNK_SIZE = 64 * 1024


def _fileno(stream: Any) -> int | None:
    """Return the OS file descriptor behind ``stream``, if it has one."""
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


@dataclass(frozen=True)
class Command:
    """An executable and the arguments every invocation starts with."""

    path: str
    args: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        """Base name of the executable, for messages."""
        return Path(self.path).name

    def with_path(self, path: str | Path) -> Command:
        """Return a copy that runs ``path`` instead."""
        return replace(self, path=str(path))

    def process(self) -> Process:
        """Create a new, not yet started process for this command."""
        return Process(self.path, list(self.args))


class Process:
    """One invocation of a :class:`Command`.

    Arguments can be appended and stdin/stdout redirected until
    :meth:`start` is called. stdin may be any readable binary object and
    stdout any writable one; objects without a file descriptor are pumped
    through a pipe by a helper thread.
    """

    def __init__(self, path: str, args: list[str] | None = None) -> None:
        self.path = path
        self.args: list[str] = list(args or [])
        self.stdin: BinaryIO | None = None
        self.stdout: IO[bytes] | None = None
        self._popen: subprocess.Popen[bytes] | None = None
        self._pumps: list[threading.Thread] = []
        self._kill_lock = threading.Lock()

    def append_args(self, *args: str) -> None:
        """Append arguments to the command line."""
        self.args.extend(str(arg) for arg in args)

    @property
    def argv(self) -> list[str]:
        """The full command line."""
        return [self.path, *self.args]

    @property
    def started(self) -> bool:
        return self._popen is not None

    @property
    def pid(self) -> int | None:
        return self._popen.pid if self._popen is not None else None

    @property
    def stderr(self) -> BinaryIO:
        """Read end of the standard error pipe."""
        if self._popen is None or self._popen.stderr is None:
            raise RuntimeError("process has not been started")
        return self._popen.stderr

    @property
    def returncode(self) -> int | None:
        return self._popen.returncode if self._popen is not None else None

    def start(self) -> None:
        """Start the subprocess.

        Raises:
            LaunchError: If the executable cannot be started.
            RuntimeError: If the process was already started.
        """
        if self._popen is not None:
            raise RuntimeError("process already started")

        stdin_fd = _fileno(self.stdin) if self.stdin is not None else None
        stdout_fd = _fileno(self.stdout) if self.stdout is not None else None

        if self.stdin is None:
            stdin: Any = subprocess.DEVNULL
        else:
            stdin = stdin_fd if stdin_fd is not None else subprocess.PIPE

        if self.stdout is None:
            stdout: Any = subprocess.DEVNULL
        else:
            stdout = stdout_fd if stdout_fd is not None else subprocess.PIPE

        logger.debug("Starting %s", shlex.join(self.argv))
        try:
            self._popen = subprocess.Popen(  # nosec B603 - argv built from options
                self.argv,
                stdin=stdin,
                stdout=stdout,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise LaunchError(f"failed to start {self.path}: {e}") from e

        if stdin is subprocess.PIPE:
            self._start_pump(self.stdin, self._popen.stdin, close_dst=True)
        if stdout is subprocess.PIPE:
            self._start_pump(self._popen.stdout, self.stdout, close_dst=False)

    def _start_pump(self, src: Any, dst: Any, close_dst: bool) -> None:
        def pump() -> None:
            try:
                while True:
                    chunk = src.read(_PUMP_CHUNK_SIZE)
                    if not chunk:
                        break
                    dst.write(chunk)
            except (BrokenPipeError, ValueError, OSError) as e:
                logger.debug("Pipe to %s closed: %s", self.path, e)
            finally:
                if close_dst:
                    try:
                        dst.close()
                    except OSError as e:
                        logger.debug("Closing pipe to %s failed: %s", self.path, e)

        thread = threading.Thread(target=pump, daemon=True)
        thread.start()
        self._pumps.append(thread)

    def wait(self) -> int:
        """Wait for the process to exit and return its exit status."""
        if self._popen is None:
            raise RuntimeError("process has not been started")
        returncode = self._popen.wait()
        for thread in self._pumps:
            thread.join()
        logger.debug("%s exited with status %d", self.path, returncode)
        return returncode

    def kill(self) -> None:
        """Forcefully terminate the process if it is still running."""
        if self._popen is None:
            return
        with self._kill_lock:
            if self._popen.poll() is not None:
                return
            try:
                self._popen.kill()
            except ProcessLookupError:
                pass
            logger.debug("Killed %s (pid %d)", self.path, self._popen.pid)
