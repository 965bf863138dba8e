"""
Relevance ranking: profile-weighted scoring without text similarity.

Public API: score_item, score_candidates, rank_for_viewer.
"""

from .scorer import rank_for_viewer, score_candidates, score_item

__all__ = [
    "rank_for_viewer",
    "score_candidates",
    "score_item",
]
