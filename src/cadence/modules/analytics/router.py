"""Cadence Analytics - Router."""

from fastapi import APIRouter, Depends

from cadence.auth import Actor, get_current_user
from cadence.config import get_settings
from cadence.deps import require_analytics
from cadence.modules.analytics.schemas import (
    ClusterRequest,
    CorrelationRequest,
    PairRequest,
    SuggestionRequest,
    SuggestionResponse,
    TagCluster,
    TagPair,
    TagRelation,
)
from cadence.modules.analytics.service import (
    analyze_tag_pairs,
    analyze_tag_relations,
    find_tag_clusters,
    suggest_tags,
)

router = APIRouter(prefix="/tags/analytics", tags=["Analytics"], dependencies=[require_analytics])


@router.post("/correlations", response_model=list[TagRelation])
async def get_correlations(
    data: CorrelationRequest,
    user: Actor = Depends(get_current_user),
) -> list[TagRelation]:
    """Tags most correlated with the target across the given saved searches."""
    limit = data.limit or get_settings().governance.correlation_limit
    return analyze_tag_relations(data.searches, data.target_tag, limit=limit)


@router.post("/suggestions", response_model=SuggestionResponse)
async def get_suggestions(
    data: SuggestionRequest,
    user: Actor = Depends(get_current_user),
) -> SuggestionResponse:
    """Related tags to add next, given the tags already chosen."""
    limit = data.limit or get_settings().governance.correlation_limit
    return SuggestionResponse(suggestions=suggest_tags(data.current_tags, data.searches, limit=limit))


@router.post("/pairs", response_model=list[TagPair])
async def get_pairs(
    data: PairRequest,
    user: Actor = Depends(get_current_user),
) -> list[TagPair]:
    return analyze_tag_pairs(data.searches, min_strength=data.min_strength)


@router.post("/clusters", response_model=list[TagCluster])
async def get_clusters(
    data: ClusterRequest,
    user: Actor = Depends(get_current_user),
) -> list[TagCluster]:
    """Groups of strongly related tags, strongest cluster first."""
    pairs = analyze_tag_pairs(data.searches, min_strength=data.min_strength)
    return find_tag_clusters(pairs, data.min_cluster_size, data.max_cluster_size)
