"""Safe arithmetic and boolean expression evaluation.

Formulas, custom validation rules and sales-grid custom summaries are parsed
with ``ast`` in eval mode and walked against a whitelist of node types. No
code is ever executed: calls, attribute access, subscripts and power are
rejected at compile time.

Field references are written as ``{field_id}`` so that IDs which are not
valid Python identifiers (UUIDs, hyphenated IDs) can be used. Bare names are
references too.
"""

from __future__ import annotations

import ast
import operator
import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .errors import ExpressionError

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")
_INTERNAL_PREFIX = "_fw_ref"

_BINARY_OPS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
}

_UNARY_OPS: Dict[type, Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
    ast.Not: operator.not_,
}

_COMPARE_OPS: Dict[type, Callable[[Any, Any], bool]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
}


_ALLOWED_OPERATORS = {*_BINARY_OPS, *_UNARY_OPS, *_COMPARE_OPS, ast.And, ast.Or}


def find_placeholders(source: str) -> List[str]:
    """Return the ``{field_id}`` references in a formula, in order, deduplicated."""
    seen: List[str] = []
    for match in _PLACEHOLDER.finditer(source or ""):
        ref = match.group(1).strip()
        if ref and ref not in seen:
            seen.append(ref)
    return seen


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class Expression:
    """A compiled, validated expression."""

    def __init__(self, source: str, tree: ast.Expression, names: Dict[str, str]):
        self.source = source
        self._tree = tree
        # parsed identifier -> reference as written by the author
        self._names = names

    def __repr__(self) -> str:
        return f"Expression({self.source!r})"

    @property
    def references(self) -> List[str]:
        return list(dict.fromkeys(self._names.values()))

    def evaluate(self, values: Mapping[str, Any]) -> Any:
        """Evaluate against a mapping of reference -> value.

        Raises:
            ExpressionError: unknown reference, division by zero or an
                operation on incompatible operands
        """
        return self._eval(self._tree.body, values)

    def _eval(self, node: ast.AST, values: Mapping[str, Any]) -> Any:
        if isinstance(node, ast.Constant):
            return node.value

        if isinstance(node, ast.Name):
            ref = self._names.get(node.id, node.id)
            if ref not in values:
                raise ExpressionError(f"Unknown reference '{ref}' in expression: {self.source}")
            return values[ref]

        if isinstance(node, ast.UnaryOp):
            operand = self._eval(node.operand, values)
            if not isinstance(node.op, ast.Not) and not _is_number(operand):
                raise ExpressionError(f"Unsupported operand {operand!r} in expression: {self.source}")
            return _UNARY_OPS[type(node.op)](operand)

        if isinstance(node, ast.BinOp):
            left = self._eval(node.left, values)
            right = self._eval(node.right, values)
            return self._binary(node.op, left, right)

        if isinstance(node, ast.BoolOp):
            result = None
            for child in node.values:
                result = self._eval(child, values)
                if isinstance(node.op, ast.And) and not result:
                    return result
                if isinstance(node.op, ast.Or) and result:
                    return result
            return result

        if isinstance(node, ast.Compare):
            left = self._eval(node.left, values)
            for op, comparator in zip(node.ops, node.comparators):
                right = self._eval(comparator, values)
                try:
                    if not _COMPARE_OPS[type(op)](left, right):
                        return False
                except TypeError as e:
                    raise ExpressionError(f"Cannot compare {left!r} and {right!r}: {self.source}") from e
                left = right
            return True

        raise ExpressionError(f"Unsupported syntax in expression: {self.source}")

    def _binary(self, op: ast.operator, left: Any, right: Any) -> Any:
        string_concat = isinstance(op, ast.Add) and isinstance(left, str) and isinstance(right, str)
        if not string_concat and not (_is_number(left) and _is_number(right)):
            raise ExpressionError(
                f"Unsupported operands {left!r} and {right!r} in expression: {self.source}"
            )
        try:
            return _BINARY_OPS[type(op)](left, right)
        except ZeroDivisionError as e:
            raise ExpressionError(f"Division by zero in expression: {self.source}") from e
        except (TypeError, ValueError, OverflowError) as e:
            raise ExpressionError(f"{e} in expression: {self.source}") from e


def _check_node(node: ast.AST, source: str) -> None:
    if isinstance(node, ast.Constant):
        value = node.value
        if value is not None and not isinstance(value, (bool, int, float, str)):
            raise ExpressionError(f"Unsupported constant {value!r} in expression: {source}")
    elif isinstance(node, ast.BinOp):
        if type(node.op) not in _BINARY_OPS:
            raise ExpressionError(f"Unsupported operator in expression: {source}")
    elif isinstance(node, ast.UnaryOp):
        if type(node.op) not in _UNARY_OPS:
            raise ExpressionError(f"Unsupported operator in expression: {source}")
    elif isinstance(node, ast.Compare):
        if any(type(op) not in _COMPARE_OPS for op in node.ops):
            raise ExpressionError(f"Unsupported comparison in expression: {source}")
    elif type(node) in _ALLOWED_OPERATORS:
        pass
    elif not isinstance(node, (ast.Expression, ast.Name, ast.Load, ast.BoolOp)):
        raise ExpressionError(f"Unsupported syntax '{type(node).__name__}' in expression: {source}")


def compile_expression(source: str, allowed_names: Optional[Iterable[str]] = None) -> Expression:
    """Parse and validate an expression.

    Args:
        source: Expression text, e.g. ``"{gla} * {price_per_sqft}"``
        allowed_names: When given, references outside this set are rejected

    Raises:
        ExpressionError: empty input, syntax error, disallowed construct or
            unknown reference
    """
    if not source or not source.strip():
        raise ExpressionError("Empty expression")

    names: Dict[str, str] = {}
    aliases: Dict[str, str] = {}

    def substitute(match: re.Match) -> str:
        ref = match.group(1).strip()
        if ref not in aliases:
            aliases[ref] = f"{_INTERNAL_PREFIX}{len(aliases)}"
            names[aliases[ref]] = ref
        return aliases[ref]

    rewritten = _PLACEHOLDER.sub(substitute, source)

    try:
        tree = ast.parse(rewritten.strip(), mode="eval")
    except SyntaxError as e:
        raise ExpressionError(f"Invalid expression syntax: {source}") from e

    for node in ast.walk(tree):
        _check_node(node, source)
        if isinstance(node, ast.Name) and node.id not in names:
            names[node.id] = node.id

    if allowed_names is not None:
        allowed = set(allowed_names)
        unknown = [ref for ref in names.values() if ref not in allowed]
        if unknown:
            raise ExpressionError(f"Unknown reference(s) {', '.join(unknown)} in expression: {source}")

    return Expression(source, tree, names)


def evaluate_expression(source: str, values: Mapping[str, Any]) -> Any:
    return compile_expression(source).evaluate(values)
