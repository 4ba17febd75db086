"""Tests for the logic to validator table"""

import json

import pytest

from corecheck.logics import DEFAULT_TABLE, LogicPolicyTable, validators_for
from corecheck.utils.exceptions import UnknownLogicError


def test_default_table_covers_common_logics():
    assert len(DEFAULT_TABLE) >= 50
    for logic in ("QF_LIA", "QF_BV", "QF_UF", "QF_LRA", "QF_AUFLIA", "UFLIA", "QF_SLIA"):
        assert logic in DEFAULT_TABLE


def test_every_logic_has_validators():
    for logic, validators in DEFAULT_TABLE.items():
        assert validators, logic
        assert len(set(validators)) == len(validators), logic


def test_lookup_order_is_preserved():
    assert validators_for("QF_LIA") == ("cvc5", "mathsat", "z3")
    assert validators_for("UFLIA") == ("cvc5", "z3")


def test_unknown_logic_raises():
    with pytest.raises(UnknownLogicError) as info:
        validators_for("QF_NOT_A_LOGIC")
    assert info.value.logic == "QF_NOT_A_LOGIC"


def test_lookup_is_case_sensitive():
    with pytest.raises(UnknownLogicError):
        validators_for("qf_lia")


def test_table_is_read_only():
    with pytest.raises(TypeError):
        DEFAULT_TABLE["QF_LIA"] = ("z3",)  # type: ignore[index]


def test_custom_table_from_json(tmp_path):
    path = tmp_path / "table.json"
    path.write_text(json.dumps({"QF_LIA": ["a", "b", "c", "d"], "MY_LOGIC": ["x"]}))
    table = LogicPolicyTable.from_json(str(path))
    assert table.validators_for("MY_LOGIC") == ("x",)
    assert validators_for("QF_LIA", table) == ("a", "b", "c", "d")
    assert table.validator_ids() == ("a", "b", "c", "d", "x")
    with pytest.raises(UnknownLogicError):
        table.validators_for("QF_BV")


def test_empty_validator_list_is_rejected():
    with pytest.raises(ValueError):
        LogicPolicyTable({"QF_LIA": []})
