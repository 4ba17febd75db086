"""
For calling the scrambler and the validation solvers.

Every external tool is reached through the narrow ``SolverRunner`` interface
so that tests can substitute deterministic fakes for real binaries.
"""
import logging
import os
import signal
import subprocess
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

import z3

from corecheck.global_params import DEFAULT_KILL_AFTER

logger = logging.getLogger(__name__)
KILL_SIGNAL = getattr(signal, "SIGKILL", signal.SIGTERM)


@dataclass(frozen=True)
class RunResult:
    """Outcome of one tool run."""
    stdout: str
    elapsed: float
    returncode: Optional[int]
    timed_out: bool = False

    @property
    def first_line(self) -> str:
        """First line of standard output, stripped; empty if there is none."""
        for line in self.stdout.splitlines():
            return line.strip()
        return ""


class SolverRunner(ABC):
    """Capability to run a tool on an input file under a time budget."""

    name: str = "runner"

    @abstractmethod
    def run(self, input_path: Optional[str], args: Sequence[str] = (),
            timeout: Optional[float] = None, *, stdin_path: Optional[str] = None,
            cwd: Optional[str] = None) -> RunResult:
        """Run the tool and return its output and wall-clock time."""


def _signal_group(process: subprocess.Popen, sig: int) -> None:
    """Send a signal to the process and everything it spawned.

    The whole session is signalled even when the top-level process has
    already exited, since its children may still hold stdout open.
    """
    try:
        if hasattr(os, "killpg"):
            os.killpg(process.pid, sig)
        elif process.poll() is not None:
            return
        elif sig == getattr(signal, "SIGKILL", None):
            process.kill()
        else:
            process.terminate()
    except ProcessLookupError:
        pass
    except OSError as ex:
        logger.error("Error interrupting process %d: %s", process.pid, ex)


@contextmanager
def spawn(cmd: List[str], stdin_path: Optional[str] = None,
          cwd: Optional[str] = None) -> Iterator[subprocess.Popen]:
    """Start a process that is guaranteed to be killed and reaped on exit.

    Everything left in the process's session is killed when the block exits.
    """
    stdin = open(stdin_path, "rb") if stdin_path else subprocess.DEVNULL
    try:
        process = subprocess.Popen(
            cmd, stdin=stdin, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL,
            cwd=cwd, start_new_session=hasattr(os, "killpg"))
    except BaseException:
        if stdin_path:
            stdin.close()
        raise
    try:
        yield process
    finally:
        _signal_group(process, KILL_SIGNAL)
        process.wait()
        if process.stdout is not None:
            process.stdout.close()
        if stdin_path:
            stdin.close()


class BinarySolverRunner(SolverRunner):
    """Run an executable, terminating it once the time budget is exhausted.

    After the budget expires the process group receives SIGTERM; if it is
    still alive ``kill_after`` seconds later it is killed.
    """

    def __init__(self, exec_path: str, base_args: Sequence[str] = (),
                 kill_after: float = DEFAULT_KILL_AFTER, name: Optional[str] = None):
        self.exec_path = exec_path
        self.base_args = list(base_args)
        self.kill_after = kill_after
        self.name = name or os.path.basename(exec_path)

    def __repr__(self) -> str:
        return f"BinarySolverRunner({self.exec_path!r}, base_args={self.base_args!r})"

    def command(self, input_path: Optional[str], args: Sequence[str] = ()) -> List[str]:
        cmd = [self.exec_path, *self.base_args, *args]
        if input_path is not None:
            cmd.append(input_path)
        return cmd

    def run(self, input_path, args=(), timeout=None, *, stdin_path=None, cwd=None):
        cmd = self.command(input_path, args)
        logger.debug("Command: %s", cmd)
        timed_out = False
        start = time.monotonic()
        with spawn(cmd, stdin_path=stdin_path, cwd=cwd) as process:
            try:
                out, _ = process.communicate(timeout=timeout)
            except subprocess.TimeoutExpired:
                timed_out = True
                logger.debug("%s exceeded %ss, terminating", self.name, timeout)
                _signal_group(process, signal.SIGTERM)
                try:
                    out, _ = process.communicate(timeout=self.kill_after)
                except subprocess.TimeoutExpired:
                    logger.debug("%s ignored SIGTERM, killing", self.name)
                    _signal_group(process, KILL_SIGNAL)
                    try:
                        out, _ = process.communicate(timeout=self.kill_after)
                    except subprocess.TimeoutExpired:
                        # stdout is held by a process outside the session
                        logger.error("%s left output open after being killed", self.name)
                        out = b""
            elapsed = time.monotonic() - start
            returncode = process.returncode
        return RunResult(out.decode("utf-8", errors="replace") if out else "",
                         elapsed, returncode, timed_out)


class Z3APIRunner(SolverRunner):
    """Check a formula file in-process through the z3 Python bindings.

    Stands in for the z3 binary when it cannot be located. Every run gets its
    own z3 context so that runs on different threads do not share state.
    """

    name = "z3-api"

    def run(self, input_path, args=(), timeout=None, *, stdin_path=None, cwd=None):
        start = time.monotonic()
        solver = z3.Solver(ctx=z3.Context())
        if timeout is not None:
            solver.set("timeout", max(1, int(timeout * 1000)))
        try:
            solver.from_file(input_path)
            result = solver.check()
        except z3.Z3Exception as ex:
            logger.debug("z3 failed on %s: %s", input_path, ex)
            return RunResult("", time.monotonic() - start, 1)
        elapsed = time.monotonic() - start
        if result == z3.sat:
            verdict = "sat"
        elif result == z3.unsat:
            verdict = "unsat"
        else:
            verdict = "unknown"
        return RunResult(verdict + "\n", elapsed, 0,
                         timed_out=timeout is not None and elapsed >= timeout)
