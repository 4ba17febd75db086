"""Facts about the original benchmark that the report needs.

Only the top-level command structure of the SMT-LIB script is inspected:
the declared logic and the number of ``assert`` commands. Terms are never
parsed.
"""
import logging
from typing import Iterator, Optional

import regex as re

from corecheck.utils.exceptions import MissingLogicError

logger = logging.getLogger(__name__)

COMMAND_NAME = re.compile(r"\(\s*([^\s()\"|;]+)")
SET_LOGIC = re.compile(r"\(\s*set-logic\s+\|?([^\s()|]+)\|?\s*\)")


def iter_commands(text: str) -> Iterator[str]:
    """Yield the text of every top-level command of an SMT-LIB script.

    String literals, quoted symbols and comments are skipped so that
    parentheses inside them do not disturb the nesting depth.
    """
    depth = 0
    start = 0
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c == ';':
            nl = text.find('\n', i)
            i = n if nl < 0 else nl + 1
            continue
        if c == '"':
            # "" is an escaped quote inside a string literal
            i += 1
            while i < n:
                if text[i] == '"':
                    if i + 1 < n and text[i + 1] == '"':
                        i += 2
                        continue
                    break
                i += 1
        elif c == '|':
            end = text.find('|', i + 1)
            i = n if end < 0 else end
        elif c == '(':
            if depth == 0:
                start = i
            depth += 1
        elif c == ')':
            if depth > 0:
                depth -= 1
                if depth == 0:
                    yield text[start:i + 1]
        i += 1
    if depth > 0:
        logger.warning("Unbalanced parentheses at end of benchmark")


def command_name(command: str) -> Optional[str]:
    m = COMMAND_NAME.match(command)
    return m.group(1) if m else None


class Benchmark:
    """The original formula of a competition benchmark."""

    def __init__(self, text: str, path: Optional[str] = None):
        self.text = text
        self.path = path
        self._logic: Optional[str] = None
        self._assert_count: Optional[int] = None

    @classmethod
    def from_file(cls, path: str) -> "Benchmark":
        with open(path, encoding="utf-8", errors="replace") as f:
            return cls(f.read(), path=path)

    def _scan(self) -> None:
        count = 0
        logic = None
        for command in iter_commands(self.text):
            name = command_name(command)
            if name == "assert":
                count += 1
            elif name == "set-logic" and logic is None:
                m = SET_LOGIC.match(command)
                if m:
                    logic = m.group(1)
        self._assert_count = count
        self._logic = logic

    @property
    def assert_count(self) -> int:
        if self._assert_count is None:
            self._scan()
        return self._assert_count

    @property
    def logic(self) -> str:
        """The declared logic.

        Raises:
            MissingLogicError: If the script has no set-logic command.
        """
        if self._assert_count is None:
            self._scan()
        if self._logic is None:
            raise MissingLogicError(self.path or "benchmark")
        return self._logic

    def __repr__(self) -> str:
        return f"Benchmark(path={self.path!r})"
