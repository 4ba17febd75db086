"""Tests for the corecheck command line"""

import stat
import sys

import pytest

from corecheck.cli.postprocess import main
from corecheck.global_params import global_config
from corecheck.tests.fakes import benchmark_text

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses /bin/sh scripts")


@pytest.fixture
def files(tmp_path):
    def _make(answer, n_asserts=5, logic="QF_LIA"):
        transcript = tmp_path / "output.txt"
        transcript.write_text(answer)
        bench = tmp_path / "bench.smt2"
        bench.write_text(benchmark_text(n_asserts, logic))
        return str(transcript), str(bench)
    return _make


@pytest.fixture(autouse=True)
def restore_config():
    saved = {name: (t.exec_path, t.is_available) for name, t in global_config.TOOLS.items()}
    timeout, kill_after = global_config.validation_timeout, global_config.kill_after
    yield
    for name, (path, available) in saved.items():
        global_config.TOOLS[name].exec_path = path
        global_config.TOOLS[name].is_available = available
    global_config.validation_timeout, global_config.kill_after = timeout, kill_after


def make_tool(tmp_path, name, body):
    path = tmp_path / name
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return str(path)


def test_sat_answer(files, capsys):
    assert main(list(files("sat\n"))) == 0
    out = capsys.readouterr().out
    assert out == ("check-sat-result-is-erroneous=1\nstarexec-result=sat\n"
                   "result-is-erroneous=1\nreduction=0\n")


def test_report_to_file(files, tmp_path):
    out = tmp_path / "report.txt"
    assert main([*files("unknown\n"), "--output", str(out)]) == 0
    assert "starexec-result=starexec-unknown\n" in out.read_text()


def test_missing_input_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.txt"), str(tmp_path / "nope.smt2")]) == 1
    assert "File not found" in capsys.readouterr().err


@posix_only
def test_unsat_answer_with_fake_tools(files, tmp_path, capsys):
    scrambler = make_tool(tmp_path, "scrambler",
                          'cat > /dev/null\necho ";; parsed 2 names: a0 a1"\n'
                          'echo "(check-sat)"\n')
    cvc5 = make_tool(tmp_path, "cvc5", "echo unsat\n")
    z3 = make_tool(tmp_path, "z3", "echo sat\n")
    mathsat = make_tool(tmp_path, "mathsat", "echo unknown\n")
    args = [*files("unsat\n(a0 a1)\n", n_asserts=5), "--scrambler", scrambler,
            "--solver-path", f"cvc5={cvc5}", "--solver-path", f"z3={z3}",
            "--solver-path", f"mathsat={mathsat}", "--timeout", "30", "--jobs", "3"]
    assert main(args) == 0
    lines = capsys.readouterr().out.splitlines()
    assert "size-unsat-core=2" in lines
    assert "cvc5-result=unsat" in lines
    assert "z3-result=sat" in lines
    assert "mathsat-result=unknown" in lines
    assert "unsat-core-validated=true" in lines
    assert lines[-2:] == ["result-is-erroneous=0", "reduction=3"]


@posix_only
def test_unknown_logic_exits_with_error(files, tmp_path, capsys):
    scrambler = make_tool(tmp_path, "scrambler",
                          'cat > /dev/null\necho ";; parsed 1 names: a0"\n')
    args = [*files("unsat\n(a0)\n", logic="QF_UNHEARD_OF"), "--scrambler", scrambler]
    assert main(args) == 1
    assert "QF_UNHEARD_OF" in capsys.readouterr().err


def test_bad_solver_path_spec(files, capsys):
    assert main([*files("sat\n"), "--solver-path", "z3"]) == 1
    assert "NAME=PATH" in capsys.readouterr().err
