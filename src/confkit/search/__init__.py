"""CQL query construction."""

from __future__ import annotations

from .cql import Clause, Combined, CQLQuery, OrderBy, build_search_cql, quote

__all__ = [
    "CQLQuery",
    "Clause",
    "Combined",
    "OrderBy",
    "build_search_cql",
    "quote",
]
