"""
pact-analyze — Proof tree renderer
===================================
Reads type-checked functions from a JSON file (one function document or
a list of them), runs the path analyzer and prints the result.

Usage
~~~~~
    python scripts/render_tree.py transfer.json            # tree as JSON
    python scripts/render_tree.py transfer.json --leaves   # per-leaf records
    python scripts/render_tree.py transfer.json --smt      # SMT-LIB per leaf
    python scripts/render_tree.py transfer.json --lenient  # keep lost-track vars
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from config import LOG_FORMAT, RENDER_INDENT
from symanalyze import AnalysisError, PathAnalyzer, leaves, render
from symanalyze.tree import CannotAnalyze
from typedast.schema import load_function

logger = logging.getLogger("pact_analyze.render_tree")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        description="Render the proof tree of type-checked Pact functions.",
    )
    ap.add_argument("path", type=Path, help="JSON file with one function or a list")
    mode = ap.add_mutually_exclusive_group()
    mode.add_argument("--leaves", action="store_true",
                      help="print one record per reachable leaf")
    mode.add_argument("--smt", action="store_true",
                      help="print an SMT-LIB script per leaf")
    ap.add_argument("--lenient", action="store_true",
                    help="keep unexpressible bindings as lost-track variables")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap.parse_args(argv)


def _smt_for_leaves(leaf_docs: list[dict[str, Any]]) -> list[str]:
    scripts = []
    for leaf in leaf_docs:
        label = " / ".join(leaf["path"]) or "<root>"
        scripts.append(f"; ── {label} [{leaf['kind']}]\n{leaf['smtlib']}")
    return scripts


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format=LOG_FORMAT)

    try:
        raw: Any = json.loads(args.path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"ERROR: cannot read {args.path}: {exc}", file=sys.stderr)
        return 2

    documents = raw if isinstance(raw, list) else [raw]
    analyzer = PathAnalyzer(lenient=args.lenient or None)
    unanalyzable = 0

    for doc in documents:
        try:
            fun = load_function(doc)
        except ValidationError as exc:
            print(f"ERROR: malformed function document:\n{exc}", file=sys.stderr)
            return 2
        try:
            result = analyzer.analyze_function(fun)
        except AnalysisError as exc:
            print(f"ERROR: {fun.name}: {exc.kind}: {exc}", file=sys.stderr)
            return 2
        for warning in result.warnings:
            print(f"warning: {fun.name}: {warning}", file=sys.stderr)

        leaf_docs = leaves(result.tree, result.env)
        unanalyzable += sum(1 for leaf in leaf_docs if leaf["kind"] == "cannot-analyze")

        if args.leaves:
            print(json.dumps({"function": fun.name, "leaves": leaf_docs},
                             indent=RENDER_INDENT, ensure_ascii=False))
        elif args.smt:
            print(f";;; {fun.name}")
            print("\n\n".join(_smt_for_leaves(leaf_docs)))
        else:
            print(json.dumps({"function": fun.name, "tree": render(result.tree)},
                             indent=RENDER_INDENT, ensure_ascii=False))
        if isinstance(result.tree, CannotAnalyze):
            logger.warning("%s could not be analysed at all: %s", fun.name, result.tree.why)

    return 1 if unanalyzable else 0


if __name__ == "__main__":
    sys.exit(main())
