"""Reconstruction of the unsat core through the scrambler.

The scrambler reads the original benchmark on stdin and the cleaned solver
transcript through ``-core``. It either prints a line containing ``ERROR``
(the transcript holds no recognizable core, typically because the solver
timed out) or a ``;; parsed <N> names: ...`` header followed by the benchmark
restricted to the assertions named in the core.
"""
import logging
import os
from dataclasses import dataclass
from typing import List, Optional

import regex as re

from corecheck.bin_solver import BinarySolverRunner, SolverRunner
from corecheck.global_params import global_config
from corecheck.response import Transcript
from corecheck.utils.exceptions import ToolNotFoundError

logger = logging.getLogger(__name__)

ERROR_MARKER = "ERROR"
PARSED_HEADER = re.compile(r"^;; parsed (\d+) names:")
CORE_FILENAME = "unsat_core.txt"
BENCHMARK_FILENAME = "benchmark.smt2"
REDUCED_FILENAME = "reduced.smt2"


@dataclass(frozen=True)
class UnsatCore:
    """A parsed unsat core and the benchmark restricted to it."""
    size: int
    formula: str

    def write(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.formula)


def parse_scrambler_output(stdout: str) -> Optional[UnsatCore]:
    """Interpret the scrambler's standard output.

    Returns None when the core is unparsable.
    """
    first, _, body = stdout.partition("\n")
    if ERROR_MARKER in first:
        logger.info("Scrambler could not parse the unsat core: %s", first.strip())
        return None
    m = PARSED_HEADER.match(first)
    if m is None:
        logger.error("Unexpected scrambler output: %r", first[:200])
        return None
    return UnsatCore(int(m.group(1)), body)


def compute_reduction(assert_count: int, core: UnsatCore) -> int:
    """Number of assertions the core removed; deliberately not clamped."""
    reduction = assert_count - core.size
    if reduction < 0:
        logger.warning("Unsat core has %d names but the benchmark only %d assertions",
                       core.size, assert_count)
    return reduction


class CoreReconstructor:
    """Adapter over the external scrambler."""

    def __init__(self, runner: Optional[SolverRunner] = None,
                 seed: Optional[int] = None, timeout: Optional[float] = None):
        self._runner = runner
        self.seed = global_config.scrambler_seed if seed is None else seed
        self.timeout = global_config.scrambler_timeout if timeout is None else timeout

    @property
    def runner(self) -> SolverRunner:
        if self._runner is None:
            path = global_config.get_tool_path("scrambler")
            if path is None:
                raise ToolNotFoundError(
                    "scrambler not found. Put it on PATH, into bin_solvers/ or "
                    "point CORECHECK_SCRAMBLER at it.")
            self._runner = BinarySolverRunner(path, kill_after=global_config.kill_after,
                                              name="scrambler")
        return self._runner

    def scrambler_args(self, core_path: str) -> List[str]:
        # seed 0 keeps the benchmark in its original order
        return ["-seed", str(self.seed), "-term_annot", "false", "-core", core_path]

    def reconstruct(self, benchmark_path: str, transcript: Transcript,
                    workdir: str) -> Optional[UnsatCore]:
        """Restrict the benchmark to the core claimed in the transcript.

        Returns None if the transcript does not contain a parsable core.
        """
        core_path = os.path.join(workdir, CORE_FILENAME)
        transcript.write(core_path)
        result = self.runner.run(None, self.scrambler_args(core_path), self.timeout,
                                 stdin_path=benchmark_path, cwd=workdir)
        if result.timed_out:
            logger.error("Scrambler timed out after %.1fs", result.elapsed)
            return None
        if result.returncode not in (0, None) and not result.stdout:
            logger.error("Scrambler exited with code %s and no output", result.returncode)
        return parse_scrambler_output(result.stdout)
