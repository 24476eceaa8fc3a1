"""Compile a SelectionState into one filter predicate.

The predicate is held as a small expression tree in the style map
renderers accept::

    ["all",
        [">=", ["get", "year"], 1999],
        ["<=", ["get", "year"], 2001],
        ["any", ["==", ["get", "ef"], 3]]]

The same tree is rendered to a Vega expression for the Altair map layers
and evaluated directly (per record, or vectorized over a DataFrame) for
the charts, so the map and the charts always agree on what is in view.
"""

import json
import operator
from dataclasses import dataclass
from typing import Any, List

import pandas as pd

from tornado_tracker.constants import ALL, EF_NONE_SENTINEL
from tornado_tracker.state import BRACKET_BOUNDS, Bracket, Dimension

_COMPARISONS = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}

_VEGA_OPERATORS = {"==": "===", "!=": "!==", ">": ">", ">=": ">=", "<": "<", "<=": "<="}


def _get(field):
    return ["get", field]


def year_clause(state):
    return [
        "all",
        [">=", _get("year"), state.year_start],
        ["<=", _get("year"), state.year_end],
    ]


def ef_clause(state):
    if not state.selected_efs:
        # Deselecting every EF bin hides everything rather than showing all.
        return ["==", _get("ef"), EF_NONE_SENTINEL]
    return ["any"] + [["==", _get("ef"), ef] for ef in sorted(state.selected_efs)]


def bracket_clause(dimension, bracket):
    bounds = BRACKET_BOUNDS[dimension][Bracket(bracket)]
    return ["all"] + [[op, _get(dimension.value), threshold] for op, threshold in bounds]


def compile_predicate(state):
    """Build the conjunction of every active clause for ``state``."""
    clauses = [year_clause(state), ef_clause(state)]
    if state.selected_state != ALL:
        clauses.append(["==", _get("state"), state.selected_state])
    for dimension in Dimension:
        bracket = state.bracket(dimension)
        if bracket != Bracket.ALL:
            clauses.append(bracket_clause(dimension, bracket))
    return Predicate(["all"] + clauses)


def _is_null(value):
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def evaluate(expression, record):
    """Evaluate an expression tree against one record mapping."""
    if not isinstance(expression, list):
        return expression
    head, args = expression[0], expression[1:]
    if head == "all":
        return all(evaluate(arg, record) for arg in args)
    if head == "any":
        return any(evaluate(arg, record) for arg in args)
    if head == "get":
        value = record.get(args[0])
        return None if _is_null(value) else value
    if head in _COMPARISONS:
        left, right = evaluate(args[0], record), evaluate(args[1], record)
        if left is None or right is None:
            return head == "==" and left is right
        return bool(_COMPARISONS[head](left, right))
    raise ValueError(f"unsupported expression operator: {head!r}")


def _vectorized(expression, df):
    if not isinstance(expression, list):
        return expression
    head, args = expression[0], expression[1:]
    if head in ("all", "any"):
        combined = pd.Series(head == "all", index=df.index)
        for arg in args:
            part = _as_mask(_vectorized(arg, df), df)
            combined = combined & part if head == "all" else combined | part
        return combined
    if head == "get":
        return df[args[0]]
    if head in _COMPARISONS:
        left, right = _vectorized(args[0], df), _vectorized(args[1], df)
        return _as_mask(_COMPARISONS[head](left, right), df)
    raise ValueError(f"unsupported expression operator: {head!r}")


def _as_mask(result, df):
    if isinstance(result, pd.Series):
        return result.fillna(False).astype(bool)
    return pd.Series(bool(result), index=df.index)


def _vega_literal(value):
    return json.dumps(value)


def to_vega(expression):
    """Render an expression tree as a Vega expression string."""
    if not isinstance(expression, list):
        return _vega_literal(expression)
    head, args = expression[0], expression[1:]
    if head in ("all", "any"):
        if not args:
            return "true" if head == "all" else "false"
        joiner = " && " if head == "all" else " || "
        return "(" + joiner.join(to_vega(arg) for arg in args) + ")"
    if head == "get":
        return f"datum[{_vega_literal(args[0])}]"
    if head in _VEGA_OPERATORS:
        return f"({to_vega(args[0])} {_VEGA_OPERATORS[head]} {to_vega(args[1])})"
    raise ValueError(f"unsupported expression operator: {head!r}")


@dataclass(frozen=True)
class Predicate:
    expression: List[Any]

    def matches(self, record):
        return evaluate(self.expression, record)

    def mask(self, df):
        if df.empty:
            return pd.Series([], index=df.index, dtype=bool)
        return _vectorized(self.expression, df)

    def filter(self, df):
        return df[self.mask(df)]

    def to_vega(self):
        return to_vega(self.expression)
