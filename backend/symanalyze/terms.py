"""
pact-analyze — Term builder mixin.

Converts the pure-expression sub-grammar (literals, variables and the
basic operators) into z3 terms.  Anything outside that grammar raises
an :class:`AnalysisError`; a partially built term is never returned.
"""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

import z3

from symanalyze.types import (
    AnalysisError, SymbolicEnv, TermConstructionFailure,
    UnsupportedConstruct, UnsupportedType, UntrackedVariable,
)
from typedast.nodes import App, Expr, Lit, LitValue, Node, Var, shape_of

logger = logging.getLogger("pact_analyze.symanalyze.terms")

CMP_OPERATORS = frozenset({">", "<", ">=", "<=", "="})
LOGICAL_OPERATORS = frozenset({"=", "and", "or", "not"})
NUMERICAL_OPERATORS = frozenset({"+", "-", "*", "/"})
BASIC_OPERATORS = CMP_OPERATORS | LOGICAL_OPERATORS | NUMERICAL_OPERATORS


def negate(term: z3.BoolRef) -> z3.BoolRef:
    return z3.Not(term)


def literal_term(value: LitValue) -> z3.ExprRef:
    if isinstance(value, bool):
        return z3.BoolVal(value)
    if isinstance(value, int):
        return z3.IntVal(value)
    if isinstance(value, Decimal):
        return z3.RealVal(format(value, "f"))
    if isinstance(value, str):
        return z3.StringVal(value)
    if isinstance(value, datetime):
        raise UnsupportedType("Time based proving is currently unsupported")
    raise UnsupportedType(f"Unsupported literal type: {type(value).__name__}")


class TermBuilder:
    """Mixin: ``build_term`` and its helpers."""

    # ── Main dispatch ─────────────────────────────────────────────────

    def build_term(self, expr: Expr, env: SymbolicEnv) -> z3.ExprRef:
        if isinstance(expr, Lit):
            return literal_term(expr.value)
        if isinstance(expr, Var):
            return self.variable_term(expr.node, env)
        if isinstance(expr, App) and expr.native and expr.body is None:
            return self._build_app(expr, env)
        raise UnsupportedConstruct(
            f"Unsupported construct found when constructing pure-equation term: "
            f"{shape_of(expr)}",
            shape_of(expr),
        )

    def variable_term(self, node: Node, env: SymbolicEnv) -> z3.ExprRef:
        var = env.get(node)
        if not var.tracked:
            reason = getattr(var.status, "reason", "")
            raise UntrackedVariable(
                f"Variable {var.name} found but tracking has failed: "
                f"{var.status.label} ({reason})",
                reason,
            )
        return var.term()

    # ── Applications ──────────────────────────────────────────────────

    def _build_app(self, expr: App, env: SymbolicEnv) -> z3.ExprRef:
        fn, args = expr.fn, expr.args
        if fn == "read":
            raise UnsupportedType("Whole-row reads have no symbolic model")
        if fn not in BASIC_OPERATORS:
            raise UnsupportedConstruct(
                f"Function {fn} is unsupported", shape_of(expr))

        if fn == "not" and len(args) == 1 and isinstance(args[0], (App, Var)):
            operand = self._part(fn, args[0], env)
            return self._combine(fn, negate, operand)

        if len(args) == 2:
            left, right = args
            if self._is_atomic_pair(left, right):
                if fn == "not":
                    raise UnsupportedConstruct(
                        "not takes a single operand", shape_of(expr))
                return self._binary(fn, left, right, env)
            if (fn in LOGICAL_OPERATORS and fn != "not"
                    and isinstance(left, App) and isinstance(right, App)):
                return self._binary(fn, left, right, env)

        raise UnsupportedConstruct(
            f"Unsupported argument shape for {fn}: {shape_of(expr)}",
            shape_of(expr),
        )

    @staticmethod
    def _is_atomic_pair(left: Expr, right: Expr) -> bool:
        """(var, lit) | (lit, var) | (var, var)."""
        if isinstance(left, Var):
            return isinstance(right, (Var, Lit))
        return isinstance(left, Lit) and isinstance(right, Var)

    def _binary(self, fn: str, left: Expr, right: Expr,
                env: SymbolicEnv) -> z3.ExprRef:
        lhs = self._part(fn, left, env)
        rhs = self._part(fn, right, env)
        lhs, rhs = self._coerce_sorts(lhs, rhs)
        return self._combine(fn, lambda a, b: _apply(fn, a, b), lhs, rhs)

    def _part(self, fn: str, expr: Expr, env: SymbolicEnv) -> z3.ExprRef:
        try:
            return self.build_term(expr, env)
        except TermConstructionFailure:
            raise
        except AnalysisError as exc:
            raise TermConstructionFailure(
                f"unable to analyze operand of {fn}: {exc}", exc) from exc

    @staticmethod
    def _combine(fn: str, op, *operands: z3.ExprRef) -> z3.ExprRef:
        try:
            return op(*operands)
        except (z3.Z3Exception, TypeError, AttributeError) as exc:
            raise TermConstructionFailure(
                f"unable to apply {fn} to "
                f"{', '.join(o.sexpr() for o in operands)}: {exc}",
                exc,
            ) from exc

    # ── Sort coercion ─────────────────────────────────────────────────

    @staticmethod
    def _coerce_sorts(left: z3.ExprRef,
                      right: z3.ExprRef) -> tuple[z3.ExprRef, z3.ExprRef]:
        """Promote Int operands to Real when the other side is Real."""
        if not (z3.is_arith(left) and z3.is_arith(right)):
            return left, right
        if left.sort() == right.sort():
            return left, right
        return _to_real(left), _to_real(right)


def _to_real(term: z3.ExprRef) -> z3.ExprRef:
    if term.sort() == z3.RealSort():
        return term
    if z3.is_int_value(term):
        return z3.RealVal(term.as_long())
    return z3.ToReal(term)


def _apply(fn: str, left: z3.ExprRef, right: z3.ExprRef) -> z3.ExprRef:
    if fn == ">":
        return left > right
    if fn == "<":
        return left < right
    if fn == ">=":
        return left >= right
    if fn == "<=":
        return left <= right
    if fn == "=":
        return left == right
    if fn == "and":
        return z3.And(left, right)
    if fn == "or":
        return z3.Or(left, right)
    if fn == "+":
        return left + right
    if fn == "-":
        return left - right
    if fn == "*":
        return left * right
    if fn == "/":
        return left / right
    raise UnsupportedConstruct(f"Operator {fn} is not yet supported!", fn)
