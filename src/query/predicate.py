"""Recursive predicate matching for row queries.

Queries are nested mappings mixing field equality, comparison operators
(``gt``, ``gte``, ``lt``, ``lte``, ``in``, ``ne``, ``nin``) and logical
combinators (``and``, ``or``, ``not``, ``nor``). Operator keys may carry a
leading ``$``. A mapping under a field key scopes the nested conditions
to that field, and sibling conditions combine with AND:

    {"price": {"gt": 10, "lt": 100}, "or": {"a": 1, "b": {"ne": 2}}}

Logical operators also take a list of mappings, each an AND of its entries:

    {"or": [{"a": 1}, {"b": 2, "c": 3}]}

Queries are parsed once into an immutable node tree, then evaluated per
row without further key inspection.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math
import operator
from typing import Any, Callable, Mapping, Sequence, Union

from core.constants import OPERATOR_PREFIX
from core.errors import TabstoreQueryError


class Operator(Enum):
    """Closed set of query operators."""

    AND = "and"
    OR = "or"
    NOT = "not"
    NOR = "nor"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NE = "ne"
    NIN = "nin"


LOGICAL_OPERATORS = frozenset({Operator.AND, Operator.OR, Operator.NOT, Operator.NOR})
MEMBERSHIP_OPERATORS = frozenset({Operator.IN, Operator.NIN})

_ORDERINGS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.GT: operator.gt,
    Operator.GTE: operator.ge,
    Operator.LT: operator.lt,
    Operator.LTE: operator.le,
}


class _Missing:
    """Marker for fields absent from a row."""

    def __repr__(self) -> str:
        return "<missing>"


_MISSING = _Missing()


@dataclass(frozen=True)
class LogicalNode:
    """Logical combination of child predicates."""

    operator: Operator
    children: tuple["PredicateNode", ...]


@dataclass(frozen=True)
class ComparisonNode:
    """Comparison of one field against an operand."""

    operator: Operator
    field: str
    operand: Any


@dataclass(frozen=True)
class FieldEquals:
    """Deep equality of one field against a value."""

    field: str
    value: Any


PredicateNode = Union[LogicalNode, ComparisonNode, FieldEquals]


def operator_for_key(key: Any) -> Operator | None:
    """Return the operator named by a query key, if any."""
    if not isinstance(key, str):
        return None
    name = key[len(OPERATOR_PREFIX):] if key.startswith(OPERATOR_PREFIX) else key
    try:
        return Operator(name)
    except ValueError:
        return None


def parse_predicate(query: Mapping[str, Any]) -> LogicalNode:
    """Parse a query mapping into a predicate tree.

    Args:
        query: Nested query mapping; the top level combines with AND.

    Returns:
        Root node of the parsed predicate.

    Raises:
        TabstoreQueryError: If the query is not a mapping, a logical
            operator is not given a mapping or list of mappings, a
            membership operand is not a sequence, or a comparison has no
            enclosing field key.
    """
    if not isinstance(query, Mapping):
        raise TabstoreQueryError(
            f"Query filter must be a mapping, got {type(query).__name__}."
        )
    return LogicalNode(Operator.AND, _parse_entries(query, None))


def matches(query: Mapping[str, Any] | LogicalNode, row: Mapping[str, Any]) -> bool:
    """Return whether a row satisfies a query.

    Args:
        query: Query mapping or an already parsed predicate tree.
        row: Row to test.

    Returns:
        True when every top-level condition holds.
    """
    predicate = query if isinstance(query, LogicalNode) else parse_predicate(query)
    return evaluate(predicate, row)


def evaluate(node: PredicateNode, row: Mapping[str, Any]) -> bool:
    """Evaluate a parsed predicate node against a row."""
    if isinstance(node, LogicalNode):
        return _evaluate_logical(node, row)
    if isinstance(node, ComparisonNode):
        return _evaluate_comparison(node, row.get(node.field, _MISSING))
    value = row.get(node.field, _MISSING)
    return value is not _MISSING and values_equal(value, node.value)


def _parse_entries(query: Mapping[str, Any], lookup: str | None) -> tuple[PredicateNode, ...]:
    return tuple(_parse_entry(key, item, lookup) for key, item in query.items())


def _parse_entry(key: str, item: Any, lookup: str | None) -> PredicateNode:
    """Parse one key/condition pair with the current lookup field."""
    found = operator_for_key(key)
    if found in LOGICAL_OPERATORS:
        return LogicalNode(found, _parse_operands(key, item, lookup))
    if found is not None:
        return _parse_comparison(key, found, item, lookup)
    if isinstance(item, Mapping):
        return LogicalNode(Operator.AND, _parse_entries(item, key))
    return FieldEquals(key, item)


def _parse_operands(key: str, item: Any, lookup: str | None) -> tuple[PredicateNode, ...]:
    """Parse the conditions of a logical operator.

    A mapping contributes one child per entry. A list contributes one child
    per element, each element being a mapping whose entries combine with AND.
    """
    if isinstance(item, Mapping):
        return _parse_entries(item, lookup)
    if isinstance(item, Sequence) and not isinstance(item, (str, bytes)):
        children = []
        for element in item:
            if not isinstance(element, Mapping):
                raise TabstoreQueryError(
                    f"Operator '{key}' expects a list of condition mappings, "
                    f"got an element of type {type(element).__name__}."
                )
            children.append(LogicalNode(Operator.AND, _parse_entries(element, lookup)))
        return tuple(children)
    raise TabstoreQueryError(
        f"Operator '{key}' expects a mapping or list of conditions, got {type(item).__name__}."
    )


def _parse_comparison(key: str, found: Operator, item: Any, lookup: str | None) -> ComparisonNode:
    if lookup is None:
        raise TabstoreQueryError(
            f"Comparison operator '{key}' has no field to compare. "
            f"Nest it under a field key, e.g. {{'price': {{'{key}': ...}}}}."
        )
    if found in MEMBERSHIP_OPERATORS:
        if isinstance(item, (str, bytes)) or not isinstance(item, (Sequence, set, frozenset)):
            raise TabstoreQueryError(
                f"Operator '{key}' expects a list of values, got {type(item).__name__}."
            )
        item = tuple(item)
    return ComparisonNode(found, lookup, item)


def _evaluate_logical(node: LogicalNode, row: Mapping[str, Any]) -> bool:
    results = (evaluate(child, row) for child in node.children)
    if node.operator is Operator.AND:
        return all(results)
    if node.operator is Operator.OR:
        return any(results)
    if node.operator is Operator.NOT:
        return not all(results)
    return not any(results)


def _evaluate_comparison(node: ComparisonNode, value: Any) -> bool:
    # Missing fields satisfy only the negative operators.
    if node.operator is Operator.NE:
        return value is _MISSING or not values_equal(value, node.operand)
    if node.operator is Operator.NIN:
        return value is _MISSING or not _contains(node.operand, value)
    if value is _MISSING:
        return False
    if node.operator is Operator.IN:
        return _contains(node.operand, value)
    try:
        return bool(_ORDERINGS[node.operator](value, node.operand))
    except TypeError:
        return False


def _contains(values: tuple[Any, ...], value: Any) -> bool:
    return any(values_equal(value, candidate) for candidate in values)


def values_equal(left: Any, right: Any) -> bool:
    """Compare values structurally, treating NaN as equal to NaN."""
    if isinstance(left, float) and isinstance(right, float) and math.isnan(left) and math.isnan(right):
        return True
    return bool(left == right)
