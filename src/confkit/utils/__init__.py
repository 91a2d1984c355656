"""Internal helpers shared across confkit."""

from __future__ import annotations

from .redact import redact

__all__ = ["redact"]
