"""
pact-analyze — Statement analysis mixin.

Handles the control-flow shapes: conditionals over literals,
``enforce``, ``enforce-keyset``, binding groups and terminal values.
Table effects live in :mod:`symanalyze.tables`.
"""
from __future__ import annotations

import logging
from typing import Sequence

import z3

from symanalyze.terms import negate
from symanalyze.tree import (
    CannotAnalyze, EnforceConstraint, EnforceKeySet, IfBranch, ProofTree,
    ReturnLiteral, ReturnUnit, ReturnVariable, Terminate,
)
from symanalyze.types import (
    AnalysisError, SymbolicEnv, SymVar, TermConstructionFailure,
    UnsupportedConstruct, construct_var,
)
from typedast.nodes import App, Binding, Expr, Lit, Named, Node, Var, shape_of

logger = logging.getLogger("pact_analyze.symanalyze.statements")


class StatementAnalyzer:
    """Mixin: ``analyze`` and the non-table statement handlers."""

    # ── Entry point ───────────────────────────────────────────────────

    def analyze(self, stmts: Sequence[Expr], env: SymbolicEnv,
                depth: int = 0) -> ProofTree:
        """Build the proof tree for *stmts* under *env*.

        Never raises :class:`AnalysisError`: a statement that cannot be
        analysed ends its own path with ``CannotAnalyze``.
        """
        if not stmts:
            return Terminate()
        if depth > self.max_depth:
            return CannotAnalyze(
                why=f"Analysis depth limit of {self.max_depth} statements exceeded",
                env=env,
                error="depth-limit",
            )
        stmt, rest = stmts[0], tuple(stmts[1:])
        try:
            return self._analyze_stmt(stmt, rest, env, depth)
        except AnalysisError as exc:
            logger.info("Path ends at %s: %s", shape_of(stmt), exc)
            return CannotAnalyze(why=str(exc), env=env, error=exc.kind)

    def _analyze_stmt(self, stmt: Expr, rest: tuple[Expr, ...],
                      env: SymbolicEnv, depth: int) -> ProofTree:
        if isinstance(stmt, Binding):
            return self._analyze_binding(stmt, rest, env, depth)
        if isinstance(stmt, (Lit, Var)):
            return self._analyze_terminal(stmt, rest, env, depth)
        if isinstance(stmt, App) and stmt.native:
            handler = self._native_handlers().get(stmt.fn)
            if handler is not None:
                return handler(stmt, rest, env, depth)
        raise UnsupportedConstruct(
            f"Pattern match failure: {shape_of(stmt)}", shape_of(stmt))

    def _native_handlers(self):
        return {
            "if": self._analyze_if,
            "enforce": self._analyze_enforce,
            "enforce-keyset": self._analyze_keyset,
            "insert": self._analyze_write,
            "update": self._analyze_write,
            "with-read": self._analyze_with_read,
            "read": self._analyze_read,
        }

    # ── Guards ────────────────────────────────────────────────────────

    def build_guard(self, expr: Expr, env: SymbolicEnv) -> z3.BoolRef:
        term = self.build_term(expr, env)
        if not z3.is_bool(term):
            raise TermConstructionFailure(
                f"Condition {shape_of(expr)} is not boolean: {term.sexpr()}")
        return term

    # ── If over two literals ──────────────────────────────────────────

    def _analyze_if(self, stmt: App, rest: tuple[Expr, ...],
                    env: SymbolicEnv, depth: int) -> ProofTree:
        if len(stmt.args) != 3 or not all(isinstance(a, Lit) for a in stmt.args[1:]):
            raise UnsupportedConstruct(
                f"Only conditionals over two literal branches are supported: "
                f"{shape_of(stmt)}",
                shape_of(stmt),
            )
        guard_expr, then_lit, else_lit = stmt.args
        cond = self.build_guard(guard_expr, env)
        true_env = env.assume(cond)
        false_env = env.assume(negate(cond))

        if rest:
            self.warn(f"Result of {shape_of(stmt)} is discarded; "
                      f"both branches continue with the remaining statements")
            true_tree = self.analyze(rest, true_env, depth + 1)
            false_tree = self.analyze(rest, false_env, depth + 1)
        else:
            true_tree = ReturnLiteral(value=then_lit.value, env=true_env)
            false_tree = ReturnLiteral(value=else_lit.value, env=false_env)
        return IfBranch(cond=cond, true=true_tree, false=false_tree, env=env)

    # ── Enforce ───────────────────────────────────────────────────────

    def _analyze_enforce(self, stmt: App, rest: tuple[Expr, ...],
                         env: SymbolicEnv, depth: int) -> ProofTree:
        args = stmt.args
        if not (len(args) == 2 and isinstance(args[1], Lit)
                and isinstance(args[1].value, str)):
            raise UnsupportedConstruct(
                f"enforce requires a condition and a message literal: {shape_of(stmt)}",
                shape_of(stmt),
            )
        cond = self.build_guard(args[0], env)
        held = env.assume(cond)
        cont = self.analyze(rest, held, depth + 1) if rest else ReturnUnit()
        return EnforceConstraint(
            message=args[1].value,
            cond=cond,
            rest=cont,
            env=held,
            violation_env=env.assume(negate(cond)),
        )

    # ── Enforce-keyset ────────────────────────────────────────────────

    def _analyze_keyset(self, stmt: App, rest: tuple[Expr, ...],
                        env: SymbolicEnv, depth: int) -> ProofTree:
        args = stmt.args
        if not (len(args) == 1 and isinstance(args[0], Lit)
                and isinstance(args[0].value, str)):
            raise UnsupportedConstruct(
                f"enforce-keyset requires a keyset name literal: {shape_of(stmt)}",
                shape_of(stmt),
            )
        # Keyset satisfaction stays an opaque side condition.
        return EnforceKeySet(
            keyset=args[0].value,
            rest=self.analyze(rest, env, depth + 1),
            env=env,
        )

    # ── Binding groups ────────────────────────────────────────────────

    def _analyze_binding(self, stmt: Binding, rest: tuple[Expr, ...],
                         env: SymbolicEnv, depth: int) -> ProofTree:
        bound = self.bind_new_vars(stmt.bindings, env)
        return self.analyze(stmt.body + rest, bound, depth + 1)

    def bind_new_vars(self, bindings: Sequence[tuple[Named, Expr]],
                      env: SymbolicEnv) -> SymbolicEnv:
        """Bind each name in order; definitions only see earlier names."""
        for named, expr in bindings:
            env = self.bind_var(named.node, expr, env)
        return env

    def bind_var(self, node: Node, expr: Expr, env: SymbolicEnv,
                 var: SymVar | None = None) -> SymbolicEnv:
        var = var or construct_var(node)
        if not var.tracked:
            logger.debug("Declaring %s without a definition (%s)", var.name, var.status)
            return env.declare(node, var)
        try:
            definition = self.build_term(expr, env)
            relation = self._equate(var, definition)
        except AnalysisError as exc:
            if not self.lenient:
                raise
            self.warn(f"Lost track of {var.name}: {exc}")
            return env.declare(node, var.lose_track(str(exc)))
        return env.declare(node, var).assume(relation)

    def _equate(self, var: SymVar, definition: z3.ExprRef) -> z3.BoolRef:
        lhs, rhs = self._coerce_sorts(var.term(), definition)
        return self._combine("=", lambda a, b: a == b, lhs, rhs)

    # ── Terminal literal / variable ───────────────────────────────────

    def _analyze_terminal(self, stmt: Lit | Var, rest: tuple[Expr, ...],
                          env: SymbolicEnv, depth: int) -> ProofTree:
        if rest:
            self.warn(f"Non-terminal value {shape_of(stmt)} has no effect and is discarded")
            return self.analyze(rest, env, depth + 1)
        if isinstance(stmt, Lit):
            return ReturnLiteral(value=stmt.value, env=env)
        return ReturnVariable(var=env.get(stmt.node), env=env)
