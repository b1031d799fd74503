"""
pact-analyze — Path analyzer (coordinator).

This is the thin top-level class that owns per-run settings and the
warning log, and delegates to mixin classes in sibling modules.
"""
from __future__ import annotations

import logging

from config import LENIENT_BINDINGS, MAX_ANALYSIS_DEPTH
from symanalyze.statements import StatementAnalyzer
from symanalyze.tables import TableAnalyzer
from symanalyze.terms import TermBuilder
from symanalyze.tree import FunctionAnalysis, size
from symanalyze.types import SymbolicEnv, construct_var
from typedast.nodes import Fun

logger = logging.getLogger("pact_analyze.symanalyze.analyzer")


class PathAnalyzer(
    TermBuilder,
    StatementAnalyzer,
    TableAnalyzer,
):
    """Turns a typed function body into a proof tree.

    Usage::

        analyzer = PathAnalyzer()
        result = analyzer.analyze_function(fun)
        # result.tree is the root ProofTree node
    """

    def __init__(self, lenient: bool | None = None,
                 max_depth: int | None = None) -> None:
        self.lenient: bool = LENIENT_BINDINGS if lenient is None else lenient
        self.max_depth: int = MAX_ANALYSIS_DEPTH if max_depth is None else max_depth
        self.warnings: list[str] = []

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    # ── Top-level entry point ─────────────────────────────────────────

    def initial_env(self, fun: Fun) -> SymbolicEnv:
        """One symbolic variable per formal parameter, in order."""
        env = SymbolicEnv()
        for arg in fun.args:
            env = env.declare(arg.node, construct_var(arg.node))
        return env

    def analyze_function(self, fun: Fun) -> FunctionAnalysis:
        self.warnings = []
        env = self.initial_env(fun)
        tree = self.analyze(fun.body, env)
        logger.info("Analyzed %s: %d parameter(s), %d tree node(s), %d warning(s)",
                    fun.name, len(fun.args), size(tree), len(self.warnings))
        return FunctionAnalysis(
            function=fun.name,
            env=env,
            tree=tree,
            warnings=tuple(self.warnings),
        )


def analyze_function(fun: Fun, lenient: bool | None = None) -> FunctionAnalysis:
    return PathAnalyzer(lenient=lenient).analyze_function(fun)
