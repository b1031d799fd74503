"""
pact-analyze — Shared configuration constants.

All tunable parameters live here so that every module imports from
one canonical source.  Environment variables override the defaults,
and a ``.env`` file next to this module is loaded first.
"""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ── Analysis bounds ───────────────────────────────────────────────────
# One recursion level per statement; deeper bodies end in CannotAnalyze.
MAX_ANALYSIS_DEPTH: int = int(os.getenv("PACT_ANALYZE_MAX_DEPTH", "400"))

# ── Binding policy ────────────────────────────────────────────────────
# When set, a binding whose definition cannot be expressed is kept as a
# LostTrack variable instead of terminating the path.
LENIENT_BINDINGS: bool = _env_flag("PACT_ANALYZE_LENIENT_BINDINGS", "0")

# ── Rendering ─────────────────────────────────────────────────────────
RENDER_INDENT: int = int(os.getenv("PACT_ANALYZE_RENDER_INDENT", "2"))
UNSUPPORTED_SORT_MARKER: str = "unsupported"

# ── Logging ───────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("PACT_ANALYZE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT: str = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"

ENGINE_VERSION: str = "pact-analyze-0.1.0"
