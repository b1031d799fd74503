"""
pact-analyze — Proof tree serializer.

``render`` turns a tree into plain JSON-compatible data; ``leaves``
flattens it into one record per reachable leaf, which is what a
solver driver consumes.  Both are pure functions of the tree value.
"""
from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from typing import Any

from config import RENDER_INDENT, UNSUPPORTED_SORT_MARKER
from symanalyze.tree import (
    CannotAnalyze, EnforceConstraint, EnforceKeySet, IfBranch, ProofTree,
    ReturnLiteral, ReturnUnit, ReturnVariable, TableInsert, TableUpdate,
    Terminate, WithRead,
)
from symanalyze.types import Declare, SymbolicEnv, SymVar, sort_of
from typedast.nodes import LitValue


# ── Building blocks ───────────────────────────────────────────────────

def render_declaration(decl: Declare) -> dict[str, Any]:
    var = decl.var
    if var.type is None:
        return {
            "symbol": var.name,
            "sort": None,
            UNSUPPORTED_SORT_MARKER: getattr(var.status, "reason", "Unsupported Type"),
        }
    return {"symbol": var.name, "sort": sort_of(var.type)}


def render_env(env: SymbolicEnv) -> dict[str, Any]:
    return {
        "declarations": [render_declaration(d) for d in env.declarations],
        "assertions": [a.smtlib() for a in env.assertions],
    }


def render_literal(value: LitValue) -> dict[str, Any]:
    if isinstance(value, bool):
        return {"type": "bool", "value": value}
    if isinstance(value, int):
        return {"type": "integer", "value": value}
    if isinstance(value, Decimal):
        return {"type": "decimal", "value": format(value, "f")}
    if isinstance(value, datetime):
        return {"type": "time", "value": value.isoformat()}
    return {"type": "string", "value": value}


def render_var(var: SymVar) -> dict[str, Any]:
    doc: dict[str, Any] = {
        "name": var.name,
        "sort": sort_of(var.type) if var.type is not None else None,
        "tracking": var.status.label,
    }
    reason = getattr(var.status, "reason", None)
    if reason is not None:
        doc["why"] = reason
    return doc


def to_smtlib(env: SymbolicEnv) -> str:
    """Declarations and assertions as an SMT-LIB script, in order."""
    lines = []
    for cmd in env.commands:
        text = cmd.smtlib()
        if text is None:
            text = f"; {cmd.var.name}: {UNSUPPORTED_SORT_MARKER} sort"
        lines.append(text)
    return "\n".join(lines)


# ── Tree rendering ────────────────────────────────────────────────────

def render(tree: ProofTree) -> dict[str, Any]:
    if isinstance(tree, ReturnUnit):
        return {"node": "return-unit"}
    if isinstance(tree, Terminate):
        return {"node": "terminate"}

    doc: dict[str, Any] = {"node": _TAGS[type(tree)], "state": render_env(tree.env)}
    if isinstance(tree, IfBranch):
        doc["cond"] = tree.cond.sexpr()
        doc["true"] = render(tree.true)
        doc["false"] = render(tree.false)
    elif isinstance(tree, EnforceConstraint):
        doc["cond"] = tree.cond.sexpr()
        doc["failsIf"] = tree.message
        doc["rest"] = render(tree.rest)
    elif isinstance(tree, EnforceKeySet):
        doc["required_keyset"] = tree.keyset
        doc["rest"] = render(tree.rest)
    elif isinstance(tree, (WithRead, TableInsert, TableUpdate)):
        doc["table"] = tree.table
        doc["lookup_key"] = tree.key
        doc["rest"] = render(tree.rest)
    elif isinstance(tree, ReturnLiteral):
        doc["returned_literal"] = render_literal(tree.value)
    elif isinstance(tree, ReturnVariable):
        doc["returned_variable"] = render_var(tree.var)
    elif isinstance(tree, CannotAnalyze):
        doc["why"] = tree.why
        doc["error"] = tree.error
    return doc


_TAGS: dict[type, str] = {
    IfBranch: "if",
    EnforceConstraint: "enforce",
    EnforceKeySet: "enforce-keyset",
    WithRead: "with-read",
    TableInsert: "insert",
    TableUpdate: "update",
    ReturnLiteral: "return-literal",
    ReturnVariable: "return-variable",
    CannotAnalyze: "cannot-analyze",
}


def render_json(tree: ProofTree, indent: int | None = RENDER_INDENT) -> str:
    return json.dumps(render(tree), indent=indent, ensure_ascii=False)


# ── Leaves ────────────────────────────────────────────────────────────

def leaves(tree: ProofTree, env: SymbolicEnv | None = None) -> list[dict[str, Any]]:
    """One record per reachable leaf, left to right.

    ``ReturnUnit`` and ``Terminate`` carry no state of their own and
    inherit the nearest enclosing snapshot (or *env*).  Every enforce
    contributes an extra ``constraint-violation`` leaf whose state
    assumes the negated condition.
    """
    out: list[dict[str, Any]] = []
    _collect(tree, env if env is not None else SymbolicEnv(), [], out)
    return out


def _leaf(kind: str, path: list[str], env: SymbolicEnv, **payload: Any) -> dict[str, Any]:
    doc: dict[str, Any] = {"path": list(path), "kind": kind}
    doc.update(render_env(env))
    doc["smtlib"] = to_smtlib(env)
    doc.update(payload)
    return doc


def _collect(tree: ProofTree, env: SymbolicEnv, path: list[str],
             out: list[dict[str, Any]]) -> None:
    if isinstance(tree, IfBranch):
        _collect(tree.true, tree.env, path + ["if:true"], out)
        _collect(tree.false, tree.env, path + ["if:false"], out)
    elif isinstance(tree, EnforceConstraint):
        out.append(_leaf("constraint-violation", path + ["enforce:fail"],
                         tree.violation_env, message=tree.message))
        _collect(tree.rest, tree.env, path + ["enforce"], out)
    elif isinstance(tree, EnforceKeySet):
        _collect(tree.rest, tree.env, path + [f"enforce-keyset:{tree.keyset}"], out)
    elif isinstance(tree, WithRead):
        _collect(tree.rest, tree.env, path + [f"with-read:{tree.table}"], out)
    elif isinstance(tree, TableInsert):
        _collect(tree.rest, tree.env, path + [f"insert:{tree.table}"], out)
    elif isinstance(tree, TableUpdate):
        _collect(tree.rest, tree.env, path + [f"update:{tree.table}"], out)
    elif isinstance(tree, ReturnLiteral):
        out.append(_leaf("literal", path, tree.env,
                         result=render_literal(tree.value)))
    elif isinstance(tree, ReturnVariable):
        out.append(_leaf("variable", path, tree.env, result=render_var(tree.var)))
    elif isinstance(tree, ReturnUnit):
        out.append(_leaf("unit", path, env))
    elif isinstance(tree, Terminate):
        out.append(_leaf("terminate", path, env))
    elif isinstance(tree, CannotAnalyze):
        out.append(_leaf("cannot-analyze", path, tree.env,
                         why=tree.why, error=tree.error))
