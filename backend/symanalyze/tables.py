"""
pact-analyze — Table effect mixin.

``insert`` / ``update`` bind one derived variable per written field;
``with-read`` binds each projected column to a cell variable for the
looked-up row.  Whole-row ``read`` has no symbolic model.
"""
from __future__ import annotations

import logging

from symanalyze.tree import ProofTree, TableInsert, TableUpdate, WithRead
from symanalyze.types import (
    AnalysisError, SymbolicEnv, UnsupportedConstruct, UnsupportedType,
    construct_var, prim_of_term,
)
from typedast.nodes import (
    App, Binding, Expr, Lit, Node, Obj, PrimType, Table, TcId, Var, shape_of,
)

logger = logging.getLogger("pact_analyze.symanalyze.tables")


def lookup_key(key: Expr) -> str:
    """Render a row key: a variable's unique id or a string literal."""
    if isinstance(key, Var):
        return key.node.unique_id
    if isinstance(key, Lit) and isinstance(key.value, str):
        return key.value
    raise UnsupportedConstruct(
        f"Lookup key must be a string literal or a variable and not: {shape_of(key)}",
        shape_of(key),
    )


def derived_node(table: str, op: str, column: str, call: App, source: Node) -> Node:
    """Node for a synthesised ``{table}-{op}-{column}`` variable.

    The call's nonce keeps repeated effects on one path distinct; the
    type comes from the expression the variable stands for.
    """
    return Node(TcId(f"{table}-{op}-{column}", call.node.tc_id.nonce), source.prim)


class TableAnalyzer:
    """Mixin: insert, update, with-read and read."""

    # ── Insert / update ───────────────────────────────────────────────

    def _analyze_write(self, stmt: App, rest: tuple[Expr, ...],
                       env: SymbolicEnv, depth: int) -> ProofTree:
        args = stmt.args
        if not (len(args) == 3 and isinstance(args[0], Table)
                and isinstance(args[2], Obj)):
            raise UnsupportedConstruct(
                f"{stmt.fn} expects a table, a key and an object: {shape_of(stmt)}",
                shape_of(stmt),
            )
        tbl, key, row = args
        key_text = lookup_key(key)

        extended = env
        for field_expr, value in row.fields:
            if not (isinstance(field_expr, Lit) and isinstance(field_expr.value, str)):
                raise UnsupportedConstruct(
                    f"Object field names must be string literals: {shape_of(field_expr)}",
                    shape_of(field_expr),
                )
            node = derived_node(tbl.name, stmt.fn, field_expr.value, stmt, value.node)
            if node.prim is None:
                node = Node(node.tc_id, self._written_prim(node, value, extended))
            extended = self.bind_var(node, value, extended)

        logger.debug("%s %s[%s]: %d field(s)", stmt.fn, tbl.name, key_text, len(row.fields))
        cont = self.analyze(rest, extended, depth + 1)
        node_type = TableInsert if stmt.fn == "insert" else TableUpdate
        return node_type(table=tbl.name, key=key_text, rest=cont, env=extended)

    def _written_prim(self, node: Node, value: Expr, env: SymbolicEnv) -> PrimType | None:
        """Type an untyped written value from the sort of its term."""
        try:
            term = self.build_term(value, env)
        except AnalysisError:
            if not self.lenient:
                raise
            term = None
        prim = prim_of_term(term) if term is not None else None
        if prim is None:
            self.warn(f"Written value for {node.unique_id} has no solver sort; "
                      f"no equation recorded")
        return prim

    # ── With-read ─────────────────────────────────────────────────────

    def _analyze_with_read(self, stmt: App, rest: tuple[Expr, ...],
                           env: SymbolicEnv, depth: int) -> ProofTree:
        args = stmt.args
        if not (len(args) == 2 and isinstance(args[0], Table)
                and isinstance(stmt.body, Binding)):
            raise UnsupportedConstruct(
                f"with-read expects a table, a key and a binding body: {shape_of(stmt)}",
                shape_of(stmt),
            )
        tbl, key = args
        key_text = lookup_key(key)

        extended = env
        cells: dict[str, Node] = {}
        for named, column in stmt.body.bindings:
            if not (isinstance(column, Lit) and isinstance(column.value, str)):
                raise UnsupportedConstruct(
                    f"with-read columns must be named by string literals: {shape_of(column)}",
                    shape_of(column),
                )
            # One cell per column; several binders may project the same one.
            cell = cells.get(column.value)
            if cell is None:
                cell = derived_node(tbl.name, "read", column.value, stmt, named.node)
                extended = extended.declare(cell, construct_var(cell))
                cells[column.value] = cell
            extended = self.bind_var(named.node, Var(cell), extended)

        cont = self.analyze(stmt.body.body + rest, extended, depth + 1)
        return WithRead(table=tbl.name, key=key_text, rest=cont, env=extended)

    # ── Read ──────────────────────────────────────────────────────────

    def _analyze_read(self, stmt: App, rest: tuple[Expr, ...],
                      env: SymbolicEnv, depth: int) -> ProofTree:
        raise UnsupportedType(
            "Objects are not yet supported, which `read` returns. "
            "Please use `with-read` instead"
        )
