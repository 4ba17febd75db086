"""Post-processing of one unsat-core track run.

    START -> sat                      (erroneous, reduction 0)
    START -> unknown                  (reduction 0)
    START -> unsat -> parse failed    (reduction 0)
                   -> parsed -> validated
                             -> rejected  (erroneous, reduction 0)
"""
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from corecheck.benchmark import Benchmark
from corecheck.logics import LogicPolicyTable, DEFAULT_TABLE
from corecheck.report import Report, build_report
from corecheck.response import SAT, UNSAT, Transcript
from corecheck.scrambler import (BENCHMARK_FILENAME, REDUCED_FILENAME, CoreReconstructor,
                                 UnsatCore, compute_reduction)
from corecheck.utils.parallel import parallel_map
from corecheck.validation import AdjudicationResult, ValidationOrchestrator, ValidatorVote

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    VERDICT_SAT = "sat"
    VERDICT_UNKNOWN = "unknown"
    PARSE_FAILED = "parse-failed"
    VALIDATED = "validated"
    REJECTED = "rejected"


@dataclass(frozen=True)
class PipelineResult:
    """Everything derived for one benchmark."""
    state: PipelineState
    status: str
    assert_count: int
    core: Optional[UnsatCore] = None
    core_reduction: Optional[int] = None
    votes: Tuple[ValidatorVote, ...] = ()
    adjudication: Optional[AdjudicationResult] = None

    @property
    def erroneous(self) -> bool:
        return self.state in (PipelineState.VERDICT_SAT, PipelineState.REJECTED)

    @property
    def reduction(self) -> int:
        if self.state == PipelineState.VALIDATED:
            return self.core_reduction
        return 0

    def report(self) -> Report:
        return build_report(self)


class UnsatCorePipeline:
    """Checks the answer of one solver on one benchmark.

    The scrambler and validator runners are injectable; by default they are
    located through the global configuration.
    """

    def __init__(self, reconstructor: Optional[CoreReconstructor] = None,
                 orchestrator: Optional[ValidationOrchestrator] = None,
                 table: Optional[LogicPolicyTable] = None,
                 keep_workdir: bool = False):
        self.reconstructor = reconstructor or CoreReconstructor()
        self.orchestrator = orchestrator or ValidationOrchestrator()
        self.table = table if table is not None else DEFAULT_TABLE
        self.keep_workdir = keep_workdir

    def run(self, transcript: Transcript, benchmark: Benchmark) -> PipelineResult:
        status = transcript.status
        assert_count = benchmark.assert_count
        logger.debug("Solver answered %r (%s), benchmark has %d assertions",
                     transcript.verdict, status, assert_count)
        if status == SAT:
            return PipelineResult(PipelineState.VERDICT_SAT, status, assert_count)
        if status != UNSAT:
            return PipelineResult(PipelineState.VERDICT_UNKNOWN, status, assert_count)

        workdir = tempfile.mkdtemp(prefix="corecheck-")
        try:
            return self._check_core(transcript, benchmark, workdir)
        finally:
            if self.keep_workdir:
                logger.info("Kept working directory %s", workdir)
            else:
                shutil.rmtree(workdir, ignore_errors=True)

    def _check_core(self, transcript: Transcript, benchmark: Benchmark,
                    workdir: str) -> PipelineResult:
        assert_count = benchmark.assert_count
        benchmark_path = benchmark.path
        if benchmark_path is None:
            benchmark_path = os.path.join(workdir, BENCHMARK_FILENAME)
            with open(benchmark_path, "w", encoding="utf-8") as f:
                f.write(benchmark.text)

        core = self.reconstructor.reconstruct(benchmark_path, transcript, workdir)
        if core is None:
            return PipelineResult(PipelineState.PARSE_FAILED, UNSAT, assert_count,
                                  core_reduction=0)
        core_reduction = compute_reduction(assert_count, core)

        validators = self.table.validators_for(benchmark.logic)
        reduced_path = os.path.join(workdir, REDUCED_FILENAME)
        core.write(reduced_path)
        votes, adjudication = self.orchestrator.validate(reduced_path, validators, workdir)
        state = PipelineState.VALIDATED if adjudication.validated else PipelineState.REJECTED
        return PipelineResult(state, UNSAT, assert_count, core=core,
                              core_reduction=core_reduction, votes=tuple(votes),
                              adjudication=adjudication)

    def process(self, transcript: Transcript, benchmark: Benchmark) -> Report:
        return self.run(transcript, benchmark).report()

    def process_files(self, transcript_path: str, benchmark_path: str) -> Report:
        return self.process(Transcript.from_file(transcript_path),
                            Benchmark.from_file(benchmark_path))


def process_files(transcript_path: str, benchmark_path: str, **kwargs) -> Report:
    """Post-process one solver output file against its benchmark."""
    return UnsatCorePipeline(**kwargs).process_files(transcript_path, benchmark_path)


def process_many(pairs: Sequence[Tuple[str, str]], jobs: int = 1,
                 pipeline: Optional[UnsatCorePipeline] = None
                 ) -> List[Union[Report, Exception]]:
    """Post-process independent (transcript, benchmark) pairs side by side.

    A failing pair yields its exception in place of a report.
    """
    pipeline = pipeline or UnsatCorePipeline()

    def _one(pair: Tuple[str, str]) -> Report:
        return pipeline.process_files(*pair)

    return parallel_map(_one, list(pairs), max_workers=max(1, jobs),
                        return_exceptions=True)
