"""Trending detection with per-item engagement breakdowns."""

from fastapi import APIRouter

from personalization.engagement import mean_total_score, passes_trending_gate, score_items
from personalization.utils import utc_now

from ..models import EngagementRankRequest, TrendingEntry, TrendingResponse
from ..state import get_state

router = APIRouter()


@router.post("/trending", response_model=TrendingResponse)
def trending(request: EngagementRankRequest):
    """Trending flag and engagement breakdown for each item against the corpus (defaults to the items)."""
    state = get_state()
    config = state.engine_config
    corpus = request.items if request.corpus is None else request.corpus
    now = utc_now()
    corpus_mean = mean_total_score(score_items(corpus, corpus, config, now))
    scores = score_items(request.items, corpus, config, now)
    return TrendingResponse(
        corpus_mean=corpus_mean,
        items=[
            TrendingEntry(item=item, trending=passes_trending_gate(score, corpus_mean, config), engagement=score)
            for item, score in zip(request.items, scores)
        ],
    )
