"""The key=value report consumed by the competition tooling.

Key names and the value encodings ("1"/"0" for erroneous, "true"/"false"
for the core flags) are relied upon by existing result processing and must
not change.
"""
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple, Union

from corecheck.response import SAT, UNSAT

if TYPE_CHECKING:
    from corecheck.pipeline import PipelineResult

Value = Union[str, int, float, bool]

CHECK_SAT_ERRONEOUS = "check-sat-result-is-erroneous"
STAREXEC_RESULT = "starexec-result"
ASSERT_COUNT = "number-of-assert-commands"
PARSABLE_CORE = "parsable-unsat-core"
CORE_SIZE = "size-unsat-core"
REDUCTION = "reduction"
VALIDATOR_COUNT = "number-of-validators"
REJECTIONS = "unsat-core-rejections"
CONFIRMATIONS = "unsat-core-confirmations"
VALIDATED = "unsat-core-validated"
RESULT_ERRONEOUS = "result-is-erroneous"

STAREXEC_UNKNOWN = "starexec-unknown"


def format_value(value: Value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)


def flag(value: bool) -> str:
    return "1" if value else "0"


class Report:
    """Append-only sequence of facts.

    A key may be recorded more than once (``reduction`` is reported for the
    core and again as the final result); lookups return the latest value.
    """

    def __init__(self):
        self._entries: List[Tuple[str, str]] = []

    def add(self, key: str, value: Value) -> None:
        self._entries.append((key, format_value(value)))

    @property
    def entries(self) -> Tuple[Tuple[str, str], ...]:
        return tuple(self._entries)

    def keys(self) -> List[str]:
        """Distinct keys in order of first appearance."""
        seen = []
        for key, _ in self._entries:
            if key not in seen:
                seen.append(key)
        return seen

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        for k, v in reversed(self._entries):
            if k == key:
                return v
        return default

    def __getitem__(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __contains__(self, key: object) -> bool:
        return any(k == key for k, _ in self._entries)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lines(self) -> List[str]:
        return [f"{key}={value}" for key, value in self._entries]

    def to_text(self) -> str:
        return "".join(line + "\n" for line in self.lines())

    def __repr__(self) -> str:
        return f"Report({self._entries!r})"


def build_report(result: "PipelineResult") -> Report:
    """Lay out the facts of a finished pipeline run in their fixed order."""
    report = Report()
    report.add(CHECK_SAT_ERRONEOUS, flag(result.status == SAT))
    report.add(STAREXEC_RESULT, result.status if result.status in (SAT, UNSAT)
               else STAREXEC_UNKNOWN)
    if result.status != SAT:
        report.add(ASSERT_COUNT, result.assert_count)

    if result.status == UNSAT:
        report.add(PARSABLE_CORE, result.core is not None)
        if result.core is not None:
            report.add(CORE_SIZE, result.core.size)
        report.add(REDUCTION, result.core_reduction)
        if result.adjudication is not None:
            report.add(VALIDATOR_COUNT, len(result.votes))
            for vote in result.votes:
                report.add(f"{vote.identifier}-result", vote.verdict)
                report.add(f"{vote.identifier}-time", vote.elapsed)
            report.add(REJECTIONS, result.adjudication.rejections)
            report.add(CONFIRMATIONS, result.adjudication.confirmations)
            report.add(VALIDATED, result.adjudication.validated)

    report.add(RESULT_ERRONEOUS, flag(result.erroneous))
    report.add(REDUCTION, result.reduction)
    return report
