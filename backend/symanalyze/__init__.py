"""
pact-analyze — Symbolic path analysis of typed contract functions.

Public API::

    from symanalyze import PathAnalyzer, analyze_function, render_json
"""
from symanalyze.analyzer import PathAnalyzer, analyze_function
from symanalyze.render import leaves, render, render_json, to_smtlib
from symanalyze.terms import negate
from symanalyze.tree import FunctionAnalysis, ProofTree
from symanalyze.types import (
    AnalysisError,
    SymbolicEnv,
    SymbolicType,
    SymVar,
    classify,
    sort_of,
)

__all__ = [
    "PathAnalyzer",
    "analyze_function",
    "leaves",
    "render",
    "render_json",
    "to_smtlib",
    "negate",
    "FunctionAnalysis",
    "ProofTree",
    "AnalysisError",
    "SymbolicEnv",
    "SymbolicType",
    "SymVar",
    "classify",
    "sort_of",
]
