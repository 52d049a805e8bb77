from __future__ import annotations

from datetime import date

import pytest

from src.qbo_sdk.integrations.qbo_criteria import CriteriaSet, Criterion, normalize
from src.qbo_sdk.integrations.qbo_errors import QBOCriteriaError
from src.qbo_sdk.integrations.qbo_query import (
    build_query,
    compile_query,
    escape_query,
    render_value,
)


def test_account_type_example_compiles_and_escapes() -> None:
    cs = normalize({"AccountType": "Expense"})
    assert (
        build_query("account", cs)
        == "select * from account where AccountType = 'Expense' startposition 1 maxresults 1000"
    )
    assert (
        compile_query("account", cs)
        == "select * from account where AccountType %3D %27Expense%27 startposition 1 maxresults 1000"
    )


def test_no_predicates_has_no_where_but_always_paginates() -> None:
    for cs in (CriteriaSet(), normalize({"limit": 10}), normalize({"asc": "Name"})):
        q = build_query("invoice", cs)
        assert " where " not in q
        assert " startposition " in q
        assert " maxresults " in q


def test_single_quotes_are_backslash_escaped() -> None:
    q = build_query("customer", normalize({"DisplayName": "O'Brien"}))
    assert "DisplayName = 'O\\'Brien'" in q
    assert escape_query(q).count("%5C%27") == 1


def test_list_values_render_in_order() -> None:
    q = build_query("item", normalize({"Id": ["3", "1", "2"]}))
    assert "Id IN ('3','1','2')" in q
    assert render_value([1, 2]) == "(1,2)"


def test_scalars() -> None:
    assert render_value(True) == "true"
    assert render_value(False) == "false"
    assert render_value(12) == "12"
    assert render_value(1.5) == "1.5"
    assert render_value("x") == "'x'"


def test_predicates_joined_with_and_then_ordering_then_pagination() -> None:
    cs = normalize(
        [
            {"Active": True},
            {"field": "Balance", "value": 100, "operator": ">="},
            {"asc": "Name"},
            {"desc": "Id"},
            {"limit": 20},
            {"offset": 41},
        ]
    )
    assert build_query("vendor", cs) == (
        "select * from vendor where Active = true and Balance >= 100"
        " orderby Name asc orderby Id desc startposition 41 maxresults 20"
    )


def test_count_switches_target() -> None:
    q = build_query("bill", normalize({"count": True}))
    assert q.startswith("select count(*) from bill ")


def test_raw_clause_is_used_verbatim() -> None:
    q = build_query("account", normalize("where Name = 'x' maxresults 5"))
    assert q == "select * from account where Name = 'x' maxresults 5"


def test_escape_order_does_not_double_escape_percent() -> None:
    assert escape_query("%'=<>&#\\+") == "%25%27%3D%3C%3E%26%23%5C%2B"
    assert escape_query("Name LIKE '50%'") == "Name LIKE %2750%25%27"


def test_compile_is_deterministic() -> None:
    cs = normalize([{"Name": "A&B"}, {"Id": ["1", "2"]}, {"desc": "MetaData.LastUpdatedTime"}])
    assert compile_query("customer", cs) == compile_query("customer", cs)


def test_trailing_backslash_does_not_open_the_literal() -> None:
    q = build_query("Customer", normalize([{"DisplayName": "C:\\"}, {"Active": True}]))
    assert "where DisplayName = 'C:\\\\' and Active = true " in q


def test_backslash_before_quote_is_kept_literal() -> None:
    assert render_value("a\\'b") == "'a\\\\\\'b'"


def test_dates_render_as_quoted_iso() -> None:
    q = build_query("Invoice", normalize({"field": "TxnDate", "value": date(2025, 1, 31), "operator": ">"}))
    assert "TxnDate > '2025-01-31'" in q


def test_values_without_a_literal_are_rejected() -> None:
    with pytest.raises(QBOCriteriaError):
        render_value(None)
    with pytest.raises(QBOCriteriaError):
        render_value({"value": "1"})
    with pytest.raises(QBOCriteriaError):
        build_query("Customer", normalize({"ParentRef": None}))
    with pytest.raises(QBOCriteriaError):
        Criterion(field="Id", value=["1", None])
