"""Rankings: per-viewer relevance and viewer-independent engagement ordering."""

import asyncio

from fastapi import APIRouter

from personalization import score_candidates
from personalization.engagement import rank_by_engagement, score_items
from personalization.utils import utc_now

from ..models import EngagementRankRequest, RankedItem, RankingResponse, RelevanceRankRequest
from ..state import get_state

router = APIRouter()


@router.post("/relevance", response_model=RankingResponse)
async def rank_relevance(request: RelevanceRankRequest):
    """Candidates ordered by relevance to the viewer's affinity profile."""
    state = get_state()
    profile = await state.profile_store.get_profile(request.viewer_id)
    scored = await asyncio.to_thread(
        score_candidates, profile, request.items, state.engine_config, utc_now()
    )
    return RankingResponse(items=[RankedItem(item=s.item, score=s.score) for s in scored])


@router.post("/engagement", response_model=RankingResponse)
def rank_engagement(request: EngagementRankRequest):
    """Items ordered by engagement score against the corpus (defaults to the items)."""
    state = get_state()
    corpus = request.items if request.corpus is None else request.corpus
    now = utc_now()
    ordered = rank_by_engagement(request.items, corpus, state.engine_config, now)
    totals = {
        s.item_id: s.total_score
        for s in score_items(request.items, corpus, state.engine_config, now)
    }
    return RankingResponse(items=[RankedItem(item=i, score=totals[i.id]) for i in ordered])
