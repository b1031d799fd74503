"""
pact-analyze — Typed expression input.

Public API::

    from typedast import Fun, load_function
"""
from typedast.nodes import (
    App,
    Binding,
    Expr,
    Fun,
    Lit,
    Named,
    Node,
    Obj,
    PrimType,
    Table,
    TcId,
    Var,
    shape_of,
)
from typedast.schema import FunctionModel, load_function

__all__ = [
    "App",
    "Binding",
    "Expr",
    "Fun",
    "Lit",
    "Named",
    "Node",
    "Obj",
    "PrimType",
    "Table",
    "TcId",
    "Var",
    "shape_of",
    "FunctionModel",
    "load_function",
]
