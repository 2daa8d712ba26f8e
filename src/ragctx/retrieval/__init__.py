"""Retrieval orchestrator: hybrid search, budget fitting, context injection."""

from ragctx.retrieval.budget import chunk_importance_weight, fit_within_token_limit
from ragctx.retrieval.hybrid import merge_hybrid_results
from ragctx.retrieval.service import RetrievalService
from ragctx.retrieval.templates import ContextFormatter

__all__ = [
    "ContextFormatter",
    "RetrievalService",
    "chunk_importance_weight",
    "fit_within_token_limit",
    "merge_hybrid_results",
]
