from __future__ import annotations

import pytest

from src.qbo_sdk.integrations.qbo_criteria import (
    CriteriaSet,
    Criterion,
    normalize,
)
from src.qbo_sdk.integrations.qbo_errors import QBOCriteriaError


def test_single_map_becomes_equality_criterion() -> None:
    cs = normalize({"AccountType": "Expense"})
    assert cs.criteria == (Criterion(field="AccountType", value="Expense", operator="="),)
    assert cs.resolved_limit == 1000
    assert cs.resolved_offset == 1
    assert cs.fetch_all is False
    assert cs.is_count is False


def test_list_value_defaults_to_in_operator() -> None:
    cs = normalize({"Id": ["1", "2"]})
    assert cs.criteria[0].operator == "IN"


def test_explicit_operator_overrides_default_and_is_upper_cased() -> None:
    cs = normalize({"field": "Name", "value": "Bo%", "operator": "like"})
    assert cs.criteria == (Criterion(field="Name", value="Bo%", operator="LIKE"),)


def test_shaped_object_without_operator_defaults_to_equals() -> None:
    cs = normalize([{"field": "Balance", "value": 0}])
    assert cs.criteria[0].operator == "="


def test_unknown_operator_is_rejected() -> None:
    with pytest.raises(QBOCriteriaError):
        normalize({"field": "Name", "value": "x", "operator": "OR"})


def test_list_with_control_fields_extracts_limit_and_offset() -> None:
    cs = normalize(
        [
            {"field": "limit", "value": 5},
            {"field": "offset", "value": 10},
            {"Name": "Bob"},
        ]
    )
    assert cs.limit == 5
    assert cs.offset == 10
    assert cs.criteria == (Criterion(field="Name", value="Bob", operator="="),)


def test_control_fields_are_case_insensitive() -> None:
    cs = normalize({"LIMIT": 3, "FetchAll": True, "Asc": "Name", "DESC": "Id", "Count": True})
    assert cs.criteria == ()
    assert cs.limit == 3
    assert cs.fetch_all is True
    assert cs.asc == "Name"
    assert cs.desc == "Id"
    assert cs.is_count is True


def test_repeated_limit_last_one_wins() -> None:
    cs = normalize([{"limit": 5}, {"field": "limit", "value": 7}])
    assert cs.limit == 7


def test_multi_field_map_expands_in_order() -> None:
    cs = normalize([{"Active": True, "Name": "Bob"}, {"field": "Balance", "value": 10, "operator": ">"}])
    assert [c.field for c in cs.criteria] == ["Active", "Name", "Balance"]
    assert [c.operator for c in cs.criteria] == ["=", "=", ">"]


def test_single_condition_mode_rejects_multiple_predicates() -> None:
    with pytest.raises(QBOCriteriaError, match="Only one condition"):
        normalize({"Active": True, "Name": "Bob"}, single_condition=True)

    # Control fields do not count as conditions.
    cs = normalize({"Name": "Bob", "limit": 2}, single_condition=True)
    assert len(cs.criteria) == 1


def test_raw_string_gets_leading_space_and_bypasses_extraction() -> None:
    assert normalize("where Name = 'x'").raw_clause == " where Name = 'x'"
    assert normalize(" limit junk").raw_clause == " limit junk"
    assert normalize(" limit junk").limit is None


def test_none_yields_empty_set() -> None:
    assert normalize(None) == CriteriaSet()


def test_invalid_limit_is_rejected() -> None:
    with pytest.raises(QBOCriteriaError):
        normalize({"limit": 0})
    with pytest.raises(QBOCriteriaError):
        normalize({"offset": "abc"})


def test_next_page_advances_offset_without_mutating() -> None:
    cs = normalize({"limit": 2})
    nxt = cs.next_page()
    assert cs.resolved_offset == 1
    assert nxt.resolved_offset == 3
    assert nxt.next_page().resolved_offset == 5


def test_bare_criterion_and_tuple_inputs() -> None:
    c = Criterion(field="Balance", value=10, operator=">")
    assert normalize(c).criteria == (c,)

    cs = normalize(({"Name": "Bob"}, c, {"limit": 4}))
    assert [x.field for x in cs.criteria] == ["Name", "Balance"]
    assert cs.limit == 4


def test_values_without_a_query_literal_are_rejected() -> None:
    with pytest.raises(QBOCriteriaError, match="ParentRef"):
        normalize({"ParentRef": None})
    with pytest.raises(QBOCriteriaError):
        normalize({"ParentRef": {"value": "1"}})
    with pytest.raises(QBOCriteriaError):
        normalize({"Id": []})


def test_string_flags_parse_case_insensitively() -> None:
    assert normalize({"fetchAll": "True"}).fetch_all is True
    assert normalize({"fetchAll": "no"}).fetch_all is False
    assert normalize({"count": None}).is_count is False
