"""Which validation solvers are used for which logic.

The table ships as ``data/validation_solvers.json`` and is loaded once into an
immutable mapping. A different table can be supplied as a JSON file with the
same shape (logic name to list of validator identifiers).
"""
import json
import logging
from importlib import resources
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Sequence, Tuple

from corecheck.utils.exceptions import UnknownLogicError

logger = logging.getLogger(__name__)


class LogicPolicyTable(Mapping):
    """Immutable mapping from logic name to an ordered tuple of validators."""

    def __init__(self, table: Mapping[str, Sequence[str]]):
        checked = {}
        for logic, validators in table.items():
            if isinstance(validators, str) or not validators:
                raise ValueError(f"Logic {logic} needs a non-empty list of validators")
            checked[str(logic)] = tuple(str(v) for v in validators)
        self._table = MappingProxyType(checked)

    @classmethod
    def from_json(cls, path: str) -> "LogicPolicyTable":
        with open(path, encoding="utf-8") as f:
            return cls(json.load(f))

    @classmethod
    def default(cls) -> "LogicPolicyTable":
        text = resources.files("corecheck.data").joinpath(
            "validation_solvers.json").read_text(encoding="utf-8")
        return cls(json.loads(text))

    def validators_for(self, logic: str) -> Tuple[str, ...]:
        """Return the validators configured for a logic.

        Raises:
            UnknownLogicError: If the logic is not in the table.
        """
        try:
            return self._table[logic]
        except KeyError:
            raise UnknownLogicError(logic) from None

    def validator_ids(self) -> Tuple[str, ...]:
        """All validator identifiers that appear in the table."""
        return tuple(sorted({v for vs in self._table.values() for v in vs}))

    def __getitem__(self, logic: str) -> Tuple[str, ...]:
        return self._table[logic]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"LogicPolicyTable({len(self._table)} logics)"


DEFAULT_TABLE = LogicPolicyTable.default()


def validators_for(logic: str, table: Optional[LogicPolicyTable] = None) -> Tuple[str, ...]:
    if table is None:
        table = DEFAULT_TABLE
    return table.validators_for(logic)
