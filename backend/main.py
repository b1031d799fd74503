"""
pact-analyze Backend — main.py
FastAPI server exposing the symbolic path analyzer.

Architecture:
  1. The caller posts one type-checked function as JSON
  2. The wire schema is validated and converted to the typed tree
  3. The path analyzer builds the proof tree
  4. The response carries the rendered tree, the per-leaf solver
     commands and any analysis warnings
"""

from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from config import ENGINE_VERSION, LOG_FORMAT, LOG_LEVEL, MAX_ANALYSIS_DEPTH
from symanalyze import AnalysisError, PathAnalyzer, leaves, render
from typedast.schema import FunctionModel

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger("pact_analyze")

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="pact-analyze — Symbolic path analysis for Pact contracts",
    version=ENGINE_VERSION,
    description=(
        "Turns a type-checked contract function into a proof tree of its "
        "execution paths, annotated with SMT-LIB declarations and assertions."
    ),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------

class AnalyzeRequest(BaseModel):
    """One function plus optional per-request settings."""
    function: FunctionModel
    lenient: bool | None = Field(
        default=None,
        description="Keep unexpressible bindings as lost-track variables "
                    "instead of ending the path.",
    )


class AnalyzeResponse(BaseModel):
    function: str
    tree: dict[str, Any]
    leaves: list[dict[str, Any]] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    elapsed_ms: int = 0
    limits: dict[str, int] | None = None


# ---------------------------------------------------------------------------
# Core endpoint
# ---------------------------------------------------------------------------

@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze(req: AnalyzeRequest) -> AnalyzeResponse:
    t0 = time.perf_counter()
    fun = req.function.to_ast()
    logger.info("━━━ /analyze %s (%d statement(s)) ━━━", fun.name, len(fun.body))

    try:
        result = PathAnalyzer(lenient=req.lenient).analyze_function(fun)
    except AnalysisError as exc:
        logger.warning("Rejected %s: %s", fun.name, exc)
        raise HTTPException(status_code=422, detail=f"{exc.kind}: {exc}") from exc
    except Exception as exc:
        logger.exception("Analysis engine error for %s", fun.name)
        raise HTTPException(status_code=500, detail=f"Analysis engine error: {exc}") from exc

    elapsed = int((time.perf_counter() - t0) * 1000)
    leaf_docs = leaves(result.tree, result.env)
    logger.info("━━━ %s done in %dms — %d leaf path(s) ━━━", fun.name, elapsed, len(leaf_docs))

    return AnalyzeResponse(
        function=result.function,
        tree=render(result.tree),
        leaves=leaf_docs,
        warnings=list(result.warnings),
        elapsed_ms=elapsed,
        limits={"max_analysis_depth": MAX_ANALYSIS_DEPTH},
    )


# ---------------------------------------------------------------------------
# Health-check
# ---------------------------------------------------------------------------

@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "engine": ENGINE_VERSION}
