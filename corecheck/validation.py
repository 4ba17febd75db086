"""Re-checking a reduced benchmark with independent solvers.

Every validator configured for the benchmark's logic is run on the formula
restricted to the unsat core. A validator answering ``sat`` rejects the core,
``unsat`` confirms it, anything else (including a timeout or a crash) is an
``unknown`` vote. The core is accepted unless rejections outnumber
confirmations.
"""
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from corecheck.bin_solver import BinarySolverRunner, SolverRunner, Z3APIRunner
from corecheck.global_params import global_config
from corecheck.response import SAT, UNSAT, UNKNOWN, classify
from corecheck.utils.parallel import ParallelExecutor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidatorVote:
    identifier: str
    verdict: str
    elapsed: float


@dataclass(frozen=True)
class AdjudicationResult:
    confirmations: int
    rejections: int

    @property
    def validated(self) -> bool:
        # ties, including no decisive vote at all, count as validated
        return self.rejections <= self.confirmations


def adjudicate(votes: Sequence[ValidatorVote]) -> AdjudicationResult:
    """Tally the votes of all validators."""
    confirmations = sum(1 for v in votes if v.verdict == UNSAT)
    rejections = sum(1 for v in votes if v.verdict == SAT)
    return AdjudicationResult(confirmations, rejections)


def default_runner(validator_id: str) -> SolverRunner:
    """Build the runner for a validator from the global tool configuration."""
    config = global_config.get_validator_config().get(validator_id)
    if config is not None and config["available"]:
        return BinarySolverRunner(config["path"], config["args"],
                                  kill_after=global_config.kill_after, name=validator_id)
    if validator_id == "z3":
        logger.info("z3 binary not found, validating through the z3 Python API")
        return Z3APIRunner()
    logger.warning("Validator %s not found, its votes will be unknown", validator_id)
    args = config["args"] if config is not None else []
    exec_name = global_config.TOOLS[validator_id].exec_name \
        if validator_id in global_config.TOOLS else validator_id
    return BinarySolverRunner(exec_name, args, kill_after=global_config.kill_after,
                              name=validator_id)


class ValidationOrchestrator:
    """Runs the validators of a logic and adjudicates their votes.

    With ``jobs > 1`` validators run concurrently on a thread pool; each one
    gets its own working directory and its own time budget.
    """

    def __init__(self, runners: Optional[Mapping[str, SolverRunner]] = None,
                 timeout: Optional[float] = None, jobs: int = 1):
        self._runners: Dict[str, SolverRunner] = dict(runners or {})
        self.timeout = global_config.validation_timeout if timeout is None else timeout
        self.jobs = max(1, jobs)

    def runner_for(self, validator_id: str) -> SolverRunner:
        if validator_id not in self._runners:
            self._runners[validator_id] = default_runner(validator_id)
        return self._runners[validator_id]

    def run_validator(self, validator_id: str, formula_path: str,
                      workdir: str) -> ValidatorVote:
        """Run one validator; never raises for a failing solver."""
        runner = self.runner_for(validator_id)
        os.makedirs(workdir, exist_ok=True)
        try:
            result = runner.run(formula_path, (), self.timeout, cwd=workdir)
        except OSError as ex:
            logger.error("Could not run validator %s: %s", validator_id, ex)
            return ValidatorVote(validator_id, UNKNOWN, 0.0)
        if result.timed_out:
            verdict = UNKNOWN
        else:
            verdict = classify(result.first_line)
        logger.info("Validator %s: %s (%.3fs)", validator_id, verdict, result.elapsed)
        return ValidatorVote(validator_id, verdict, result.elapsed)

    def collect_votes(self, validators: Sequence[str], formula_path: str,
                      workdir: str) -> List[ValidatorVote]:
        """Run all validators, returning the votes in table order."""
        tasks = [(vid, formula_path, os.path.join(workdir, f"{i}-{vid}"))
                 for i, vid in enumerate(validators)]
        if self.jobs == 1 or len(tasks) <= 1:
            return [self.run_validator(*task) for task in tasks]
        # the runner cache is filled up front so that threads only read it
        for vid in validators:
            self.runner_for(vid)
        with ParallelExecutor(max_workers=min(self.jobs, len(tasks)),
                              logger=logger) as ex:
            return ex.run(lambda task: self.run_validator(*task), tasks)

    def validate(self, formula_path: str, validators: Sequence[str],
                 workdir: str) -> Tuple[List[ValidatorVote], AdjudicationResult]:
        votes = self.collect_votes(validators, formula_path, workdir)
        result = adjudicate(votes)
        logger.info("Unsat core %s: %d confirmations, %d rejections",
                    "validated" if result.validated else "rejected",
                    result.confirmations, result.rejections)
        return votes, result
