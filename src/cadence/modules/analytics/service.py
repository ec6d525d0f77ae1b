"""
Cadence Analytics - Tag correlation.

Relatedness between tags from their co-occurrence in saved searches,
scored with the Jaccard similarity of the two tags' occurrence sets:

    correlation = both / (count(target) + count(tag) - both)

Ties are ordered by tag name so results are deterministic.
"""

from collections import Counter, deque
from itertools import combinations
from typing import Any, Iterable

from cadence.core.validation import require_tag_name
from cadence.exceptions import ValidationException
from cadence.modules.analytics.schemas import SavedSearch, TagCluster, TagPair, TagRelation

DEFAULT_LIMIT = 5
DEFAULT_MIN_STRENGTH = 0.3


def _tags_of(search: SavedSearch | dict[str, Any] | Iterable[str]) -> set[str]:
    if isinstance(search, SavedSearch):
        return set(search.tags)
    if isinstance(search, dict):
        return set(search.get("tags") or [])
    return set(search)


def _check_limit(limit: int | None) -> None:
    if limit is not None and limit < 1:
        raise ValidationException(f"limit must be at least 1, got {limit}")


def analyze_tag_relations(
    searches: Iterable[SavedSearch | dict[str, Any] | Iterable[str]],
    target_tag: str,
    limit: int | None = DEFAULT_LIMIT,
) -> list[TagRelation]:
    """
    Tags most related to target_tag, best first.

    Each search's tags are treated as a set. Returns an empty list when the
    target never appears; limit=None returns every candidate.
    """
    require_tag_name(target_tag, "target_tag")
    _check_limit(limit)

    cooccurrences: Counter[str] = Counter()
    tag_counts: Counter[str] = Counter()
    target_count = 0

    for search in searches:
        tags = _tags_of(search)
        if target_tag in tags:
            target_count += 1
            cooccurrences.update(tags - {target_tag})
        tag_counts.update(tags)

    relations = [
        TagRelation(
            tag=tag,
            cooccurrences=both,
            correlation=both / (target_count + tag_counts[tag] - both),
        )
        for tag, both in cooccurrences.items()
    ]
    relations.sort(key=lambda r: (-r.correlation, r.tag))
    return relations[:limit] if limit is not None else relations


def suggest_tags(
    current_tags: Iterable[str],
    searches: Iterable[SavedSearch | dict[str, Any] | Iterable[str]],
    limit: int = DEFAULT_LIMIT,
) -> list[str]:
    """Tags related to any of current_tags, ranked by summed correlation."""
    _check_limit(limit)
    current = list(dict.fromkeys(current_tags))
    corpus = [_tags_of(s) for s in searches]

    scores: Counter[str] = Counter()
    for tag in current:
        for relation in analyze_tag_relations(corpus, tag, limit=None):
            if relation.tag not in current:
                scores[relation.tag] += relation.correlation

    ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    return [tag for tag, _ in ranked[:limit]]


def analyze_tag_pairs(
    searches: Iterable[SavedSearch | dict[str, Any] | Iterable[str]],
    min_strength: float = DEFAULT_MIN_STRENGTH,
) -> list[TagPair]:
    """Every co-occurring pair at or above min_strength, strongest first."""
    tag_counts: Counter[str] = Counter()
    pair_counts: Counter[tuple[str, str]] = Counter()

    for search in searches:
        tags = sorted(_tags_of(search))
        tag_counts.update(tags)
        pair_counts.update(combinations(tags, 2))

    pairs = []
    for (source, target), both in pair_counts.items():
        strength = both / (tag_counts[source] + tag_counts[target] - both)
        if strength >= min_strength:
            pairs.append(TagPair(source=source, target=target, cooccurrences=both, strength=strength))

    pairs.sort(key=lambda p: (-p.strength, p.source, p.target))
    return pairs


def find_tag_clusters(
    pairs: list[TagPair],
    min_cluster_size: int = 3,
    max_cluster_size: int = 10,
) -> list[TagCluster]:
    """
    Group tags into clusters by breadth-first search over the pair graph.

    Traversal starts from tags in the order they first appear in pairs and
    stops growing a cluster at max_cluster_size; tags left over start
    clusters of their own. Clusters smaller than min_cluster_size are
    dropped, but their tags stay claimed.

    A cluster's strength is the mean strength of the pairs inside it; its
    center is the tag paired with the most other members (first wins ties).
    """
    if min_cluster_size < 1 or max_cluster_size < min_cluster_size:
        raise ValidationException(
            f"Invalid cluster sizes: min={min_cluster_size}, max={max_cluster_size}",
            errors=[
                {"field": "min_cluster_size", "value": min_cluster_size},
                {"field": "max_cluster_size", "value": max_cluster_size},
            ],
        )

    neighbors: dict[str, list[str]] = {}
    strengths: dict[frozenset[str], float] = {}
    for pair in pairs:
        neighbors.setdefault(pair.source, []).append(pair.target)
        neighbors.setdefault(pair.target, []).append(pair.source)
        strengths[frozenset((pair.source, pair.target))] = pair.strength

    visited: set[str] = set()
    clusters = []

    for start in neighbors:
        if start in visited:
            continue

        members: list[str] = []
        queue = deque([start])
        while queue and len(members) < max_cluster_size:
            tag = queue.popleft()
            if tag in visited:
                continue
            visited.add(tag)
            members.append(tag)
            queue.extend(n for n in neighbors[tag] if n not in visited)

        if len(members) < min_cluster_size:
            continue

        inner = [strengths[key] for key in map(frozenset, combinations(members, 2)) if key in strengths]
        connections = [sum(frozenset((tag, other)) in strengths for other in members) for tag in members]
        clusters.append(
            TagCluster(
                tags=members,
                strength=sum(inner) / len(inner) if inner else 0.0,
                center=members[connections.index(max(connections))],
            )
        )

    clusters.sort(key=lambda c: -c.strength)
    return clusters
