"""Cleaning of raw solver transcripts.

A transcript produced under the competition harness interleaves the solver's
answers with ``success`` acknowledgements and prefixes every line with the
harness' ``<cpu>/<wall>\\t`` timing stamp. Both are removed here.
"""
import logging
from typing import Iterable, List, Tuple, Union

import regex as re

logger = logging.getLogger(__name__)

ACKNOWLEDGEMENT = "success"
TIMING_PREFIX = re.compile(r"^\d+(?:\.\d+)?/\d+(?:\.\d+)?\t")

SAT = "sat"
UNSAT = "unsat"
UNKNOWN = "unknown"


def classify(verdict: str) -> str:
    """Map a raw answer line to ``sat``, ``unsat`` or ``unknown``."""
    verdict = verdict.strip()
    if verdict in (SAT, UNSAT):
        return verdict
    return UNKNOWN


def normalize_lines(lines: Iterable[str]) -> List[str]:
    """Drop acknowledgements and strip harness timing prefixes.

    An acknowledgement that still carries a timing prefix is dropped too.
    """
    cleaned = []
    for line in lines:
        line = line.rstrip("\r\n")
        if line == ACKNOWLEDGEMENT:
            continue
        line = TIMING_PREFIX.sub("", line, count=1)
        if line == ACKNOWLEDGEMENT:
            continue
        cleaned.append(line)
    return cleaned


class Transcript:
    """A cleaned solver transcript.

    The verdict is the first cleaned line with surrounding whitespace
    removed; an empty transcript has an empty verdict.
    """

    def __init__(self, lines: Iterable[str]):
        self._lines: Tuple[str, ...] = tuple(lines)

    @classmethod
    def from_raw(cls, raw: Union[str, bytes, Iterable[str]]) -> "Transcript":
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        if isinstance(raw, str):
            raw = raw.splitlines()
        return cls(normalize_lines(raw))

    @classmethod
    def from_file(cls, path: str) -> "Transcript":
        with open(path, "rb") as f:
            return cls.from_raw(f.read())

    @property
    def lines(self) -> Tuple[str, ...]:
        return self._lines

    @property
    def verdict(self) -> str:
        if not self._lines:
            return ""
        return self._lines[0].strip()

    @property
    def status(self) -> str:
        return classify(self.verdict)

    def text(self) -> str:
        return "".join(line + "\n" for line in self._lines)

    def write(self, path: str) -> None:
        """Persist the cleaned transcript, e.g. as the scrambler's core input."""
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.text())

    def __len__(self) -> int:
        return len(self._lines)

    def __repr__(self) -> str:
        return f"Transcript(verdict={self.verdict!r}, lines={len(self._lines)})"
