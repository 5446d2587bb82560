"""Unit tests for recursive predicate matching."""

from __future__ import annotations

from datetime import datetime

import pytest

from core.errors import TabstoreQueryError
from query.predicate import (
    ComparisonNode,
    FieldEquals,
    LogicalNode,
    Operator,
    matches,
    operator_for_key,
    parse_predicate,
)


def test_plain_mapping_is_implicit_and() -> None:
    """All field conditions must hold for an implicit AND."""
    query = {"a": 1, "b": 2}

    assert matches(query, {"a": 1, "b": 2, "c": 3}) and not matches(query, {"a": 1, "b": 3})


@pytest.mark.parametrize(("price", "expected"), [(50, True), (5, False), (100, False)])
def test_field_scoped_comparisons(price: int, expected: bool) -> None:
    """Nested comparisons should apply to the enclosing field, strictly."""
    assert matches({"price": {"gt": 10, "lt": 100}}, {"price": price}) is expected


def test_or_matches_when_any_branch_holds() -> None:
    """or should succeed when one branch matches."""
    query = {"or": {"a": {"gt": 10}, "b": {"lt": 5}}}

    assert matches(query, {"a": 20, "b": 20}) and not matches(query, {"a": 1, "b": 20})


def test_not_negates_conjunction() -> None:
    """not should be false when its nested AND holds."""
    assert not matches({"not": {"a": 1}}, {"a": 1}) and matches({"not": {"a": 1}}, {"a": 2})


def test_nor_requires_every_branch_to_fail() -> None:
    """nor should hold only when no branch matches."""
    query = {"nor": {"a": 1, "b": 2}}

    assert matches(query, {"a": 0, "b": 0}) and not matches(query, {"a": 0, "b": 2})


def test_empty_combinators_follow_vacuous_truth() -> None:
    """Empty AND is true and empty OR is false."""
    row = {"a": 1}

    assert matches({}, row) and matches({"and": {}}, row) and not matches({"or": {}}, row)


def test_dollar_prefixed_operators_are_recognized() -> None:
    """Operators should work with or without a leading dollar sign."""
    query = {"$or": {"a": {"$gte": 3}, "b": {"$in": ["x", "y"]}}}

    assert matches(query, {"a": 1, "b": "y"}) and not matches(query, {"a": 1, "b": "z"})


def test_membership_and_inequality_operators() -> None:
    """in, nin, and ne should compare against the scoped field."""
    row = {"region": "west", "code": 7}

    assert (
        matches({"region": {"in": ["west", "east"]}}, row)
        and matches({"region": {"nin": ["north"]}}, row)
        and matches({"code": {"ne": 8}}, row)
        and not matches({"code": {"ne": 7}}, row)
    )


def test_missing_fields_only_satisfy_negative_operators() -> None:
    """A missing field fails comparisons but passes ne and nin."""
    row = {"other": 1}

    assert (
        not matches({"price": {"gt": 0}}, row)
        and not matches({"price": None}, row)
        and matches({"price": {"ne": 1}}, row)
        and matches({"price": {"nin": [1]}}, row)
    )


def test_incomparable_values_do_not_match() -> None:
    """Comparing strings to numbers should be false, not an error."""
    assert not matches({"price": {"gt": 10}}, {"price": "expensive"})


def test_equality_is_deep_for_sequences_and_mappings() -> None:
    """Non-mapping values compare by deep equality."""
    assert matches({"tags": ["a", "b"]}, {"tags": ["a", "b"]}) and not matches(
        {"tags": ["a"]}, {"tags": ["a", "b"]}
    )


def test_dates_compare_by_value() -> None:
    """Datetime fields should support ordering operators."""
    row = {"day": datetime(2021, 6, 1)}

    assert matches({"day": {"gte": datetime(2021, 1, 1), "lt": datetime(2022, 1, 1)}}, row)


def test_logical_operator_inside_field_scope_keeps_lookup() -> None:
    """Logical operators nested under a field should keep that field."""
    query = {"price": {"or": {"lt": 10, "gt": 100}}}

    assert matches(query, {"price": 500}) and not matches(query, {"price": 50})


def test_unknown_operator_falls_back_to_field_equality() -> None:
    """Unrecognized keys are treated as field names."""
    assert matches({"price": {"eq": 5}}, {"price": 1, "eq": 5})


def test_top_level_comparison_is_rejected() -> None:
    """A comparison without an enclosing field key is invalid."""
    with pytest.raises(TabstoreQueryError):
        parse_predicate({"gt": 10})


def test_logical_operator_requires_mapping_or_list() -> None:
    """Logical operators must wrap a mapping or list of conditions."""
    with pytest.raises(TabstoreQueryError):
        parse_predicate({"or": 1})


def test_logical_operator_rejects_non_mapping_list_elements() -> None:
    """Each element of a logical operator list must be a mapping."""
    with pytest.raises(TabstoreQueryError):
        parse_predicate({"or": [{"a": 1}, 2]})


def test_logical_operator_accepts_list_of_mappings() -> None:
    """List elements combine by the operator, entries within one element by AND."""
    query = {"$or": [{"a": 1}, {"b": 2, "c": {"gt": 3}}]}

    assert (
        matches(query, {"a": 1})
        and matches(query, {"b": 2, "c": 4})
        and not matches(query, {"b": 2, "c": 3})
        and matches({"nor": [{"a": 1}, {"b": 2}]}, {"a": 3, "b": 3})
    )


def test_logical_list_inside_field_scope_keeps_lookup_field() -> None:
    """List elements under a field key compare against that field."""
    query = {"price": {"or": [{"lt": 10}, {"gt": 100}]}}

    assert [matches(query, {"price": price}) for price in (5, 50, 500)] == [True, False, True]


def test_membership_operator_requires_sequence() -> None:
    """in and nin must be given a list of values."""
    with pytest.raises(TabstoreQueryError):
        parse_predicate({"region": {"in": "west"}})


def test_parse_predicate_builds_closed_node_tree() -> None:
    """Parsing should bind comparison fields at parse time."""
    tree = parse_predicate({"price": {"gt": 10}, "region": "west"})

    assert tree == LogicalNode(
        Operator.AND,
        (
            LogicalNode(Operator.AND, (ComparisonNode(Operator.GT, "price", 10),)),
            FieldEquals("region", "west"),
        ),
    )


def test_matches_accepts_parsed_tree() -> None:
    """A parsed predicate can be reused across rows."""
    tree = parse_predicate({"a": {"lte": 2}})

    assert [matches(tree, {"a": value}) for value in (1, 2, 3)] == [True, True, False]


def test_operator_for_key_ignores_field_names() -> None:
    """Plain field names are not operators."""
    assert operator_for_key("price") is None and operator_for_key("$nin") is Operator.NIN
