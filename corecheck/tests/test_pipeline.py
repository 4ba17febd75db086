"""End-to-end tests of the post-processing pipeline with fake tools"""

import pytest

from corecheck.benchmark import Benchmark
from corecheck.pipeline import PipelineState, UnsatCorePipeline, process_many
from corecheck.response import Transcript
from corecheck.scrambler import CoreReconstructor
from corecheck.utils.exceptions import UnknownLogicError
from corecheck.validation import ValidationOrchestrator
from corecheck.tests.fakes import FakeScrambler, benchmark_text, validator


def make_pipeline(core_size, verdicts, scrambler=None):
    runners = {vid: validator(v, elapsed=1.0 + i)
               for i, (vid, v) in enumerate(zip(("cvc5", "mathsat", "z3"), verdicts))}
    pipeline = UnsatCorePipeline(
        reconstructor=CoreReconstructor(scrambler or FakeScrambler(size=core_size)),
        orchestrator=ValidationOrchestrator(runners, timeout=120),
    )
    return pipeline, runners


def run(pipeline, transcript, n_asserts, logic="QF_LIA"):
    return pipeline.process(Transcript.from_raw(transcript),
                            Benchmark(benchmark_text(n_asserts, logic)))


UNSAT_OUTPUT = "success\n0.01/0.02\tunsat\n0.01/0.02\t(a0 a1 a2 a3)\n"


def test_scenario_a_validated_core():
    pipeline, _ = make_pipeline(4, ["unsat", "unknown", "unsat"])
    report = run(pipeline, UNSAT_OUTPUT, 10)
    assert report.lines() == [
        "check-sat-result-is-erroneous=0",
        "starexec-result=unsat",
        "number-of-assert-commands=10",
        "parsable-unsat-core=true",
        "size-unsat-core=4",
        "reduction=6",
        "number-of-validators=3",
        "cvc5-result=unsat",
        "cvc5-time=1.000",
        "mathsat-result=unknown",
        "mathsat-time=2.000",
        "z3-result=unsat",
        "z3-time=3.000",
        "unsat-core-rejections=0",
        "unsat-core-confirmations=2",
        "unsat-core-validated=true",
        "result-is-erroneous=0",
        "reduction=6",
    ]


def test_scenario_b_sat_answer():
    pipeline, runners = make_pipeline(4, ["unsat", "unsat", "unsat"])
    report = run(pipeline, "success\nsat\n", 10)
    assert report.lines() == [
        "check-sat-result-is-erroneous=1",
        "starexec-result=sat",
        "result-is-erroneous=1",
        "reduction=0",
    ]
    assert all(not r.calls for r in runners.values())
    assert not pipeline.reconstructor.runner.calls


def test_scenario_c_unparsable_core():
    scrambler = FakeScrambler(size=None)
    pipeline, runners = make_pipeline(None, ["sat", "sat", "sat"], scrambler=scrambler)
    report = run(pipeline, "unsat\n", 10)
    assert report["parsable-unsat-core"] == "false"
    assert report["reduction"] == "0"
    assert report["result-is-erroneous"] == "0"
    assert "unsat-core-validated" not in report
    assert "size-unsat-core" not in report
    assert all(not r.calls for r in runners.values())


def test_scenario_d_no_reduction_is_valid():
    pipeline, _ = make_pipeline(5, ["unsat", "unsat", "unsat"])
    report = run(pipeline, UNSAT_OUTPUT, 5)
    assert report["reduction"] == "0"
    assert report["unsat-core-validated"] == "true"
    assert report["unsat-core-confirmations"] == "3"
    assert report["result-is-erroneous"] == "0"


def test_scenario_e_rejected_core():
    pipeline, _ = make_pipeline(4, ["sat", "unsat", "sat"])
    result = pipeline.run(Transcript.from_raw(UNSAT_OUTPUT), Benchmark(benchmark_text(10)))
    assert result.state == PipelineState.REJECTED
    assert result.core_reduction == 6
    report = result.report()
    assert report["unsat-core-rejections"] == "2"
    assert report["unsat-core-confirmations"] == "1"
    assert report["unsat-core-validated"] == "false"
    assert report["result-is-erroneous"] == "1"
    assert report.lines()[-1] == "reduction=0"


@pytest.mark.parametrize("transcript", ["", "unknown\n", "timeout\n", "success\n",
                                        "(error \"x\")\nunsat\n"])
def test_unknown_answers_skip_validation(transcript):
    pipeline, runners = make_pipeline(4, ["sat", "sat", "sat"])
    report = run(pipeline, transcript, 8)
    assert report.lines() == [
        "check-sat-result-is-erroneous=0",
        "starexec-result=starexec-unknown",
        "number-of-assert-commands=8",
        "result-is-erroneous=0",
        "reduction=0",
    ]
    assert all(not r.calls for r in runners.values())
    assert not pipeline.reconstructor.runner.calls


def test_oversized_core_is_reported_not_clamped():
    pipeline, _ = make_pipeline(12, ["unsat", "unsat", "unsat"])
    report = run(pipeline, UNSAT_OUTPUT, 10)
    assert report["size-unsat-core"] == "12"
    assert report["reduction"] == "-2"


def test_two_validator_logic():
    pipeline, runners = make_pipeline(1, ["sat", "unsat", "unsat"])
    report = run(pipeline, UNSAT_OUTPUT, 3, logic="UFLIA")
    assert report["number-of-validators"] == "2"
    assert "mathsat-result" not in report
    assert report["unsat-core-validated"] == "true"
    assert not runners["mathsat"].calls


def test_unknown_logic_aborts():
    pipeline, runners = make_pipeline(4, ["unsat", "unsat", "unsat"])
    with pytest.raises(UnknownLogicError):
        run(pipeline, UNSAT_OUTPUT, 10, logic="QF_MADE_UP")
    assert all(not r.calls for r in runners.values())


def test_report_is_idempotent():
    texts = []
    for _ in range(2):
        pipeline, _ = make_pipeline(4, ["unsat", "sat", "unknown"])
        texts.append(run(pipeline, UNSAT_OUTPUT, 10).to_text())
    assert texts[0] == texts[1]


def test_benchmark_written_when_not_on_disk():
    scrambler = FakeScrambler(size=2)
    pipeline, _ = make_pipeline(2, ["unsat"] * 3, scrambler=scrambler)
    run(pipeline, UNSAT_OUTPUT, 4)
    assert scrambler.calls[0]["stdin_path"].endswith("benchmark.smt2")


def test_process_many(tmp_path):
    pairs = []
    for i, answer in enumerate(["sat\n", UNSAT_OUTPUT, "unknown\n"]):
        transcript = tmp_path / f"out{i}.txt"
        transcript.write_text(answer)
        bench = tmp_path / f"b{i}.smt2"
        bench.write_text(benchmark_text(6, logic="QF_LIA" if i != 1 else "NOPE"))
        pairs.append((str(transcript), str(bench)))
    pipeline, _ = make_pipeline(3, ["unsat"] * 3)
    results = process_many(pairs, jobs=2, pipeline=pipeline)
    assert results[0]["starexec-result"] == "sat"
    assert isinstance(results[1], UnknownLogicError)
    assert results[2]["starexec-result"] == "starexec-unknown"
