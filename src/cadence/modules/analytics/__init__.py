"""Cadence Analytics Module - Tag correlation from saved searches."""

from cadence.modules.analytics.router import router
from cadence.modules.analytics.service import (
    analyze_tag_pairs,
    analyze_tag_relations,
    find_tag_clusters,
    suggest_tags,
)

__all__ = ["router", "analyze_tag_pairs", "analyze_tag_relations", "find_tag_clusters", "suggest_tags"]
