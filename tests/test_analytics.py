"""
Tests for tag correlation analytics.
"""

import pytest

from cadence.exceptions import ValidationException
from cadence.modules.analytics import analyze_tag_pairs, analyze_tag_relations, find_tag_clusters, suggest_tags
from cadence.modules.analytics.schemas import SavedSearch, TagPair


def test_correlation_example():
    searches = [["A", "B"], ["A", "C"], ["B", "C"]]
    relations = analyze_tag_relations(searches, "A")

    assert [r.tag for r in relations] == ["B", "C"]
    assert all(r.cooccurrences == 1 for r in relations)
    assert relations[0].correlation == pytest.approx(1 / 3)
    assert relations[1].correlation == pytest.approx(1 / 3)


def test_perfect_correlation():
    relations = analyze_tag_relations([{"tags": ["A", "B"]}, {"tags": ["A", "B"]}], "A")
    assert relations[0].tag == "B"
    assert relations[0].correlation == pytest.approx(1.0)


def test_ranked_best_first():
    searches = [
        SavedSearch(tags=["rock", "guitar"]),
        SavedSearch(tags=["rock", "guitar"]),
        SavedSearch(tags=["rock", "drums"]),
        SavedSearch(tags=["drums", "jazz"]),
    ]
    relations = analyze_tag_relations(searches, "rock")
    assert [r.tag for r in relations] == ["guitar", "drums"]
    assert relations[0].correlation == pytest.approx(2 / 3)
    assert relations[1].correlation == pytest.approx(1 / 4)


def test_limit_defaults_to_five():
    searches = [["target"] + [f"t{i}" for i in range(8)]]
    assert len(analyze_tag_relations(searches, "target")) == 5
    assert len(analyze_tag_relations(searches, "target", limit=None)) == 8


def test_absent_target_returns_empty():
    assert analyze_tag_relations([["A", "B"]], "Z") == []
    assert analyze_tag_relations([], "A") == []


def test_duplicate_tags_in_a_search_count_once():
    relations = analyze_tag_relations([["A", "B", "B", "A"]], "A")
    assert relations[0].cooccurrences == 1
    assert relations[0].correlation == pytest.approx(1.0)


def test_invalid_limit():
    with pytest.raises(ValidationException):
        analyze_tag_relations([["A"]], "A", limit=0)


def test_suggest_tags_excludes_current():
    searches = [["rock", "guitar"], ["rock", "drums"], ["guitar", "amp"]]
    suggestions = suggest_tags(["rock", "guitar"], searches)

    assert "rock" not in suggestions
    assert "guitar" not in suggestions
    assert set(suggestions) == {"drums", "amp"}


class TestAnalyticsApi:
    def test_correlations(self, client, alice_headers):
        response = client.post(
            "/tags/analytics/correlations",
            json={"target_tag": "A", "searches": [{"tags": ["A", "B"]}, {"tags": ["A", "C"]}, {"tags": ["B", "C"]}]},
            headers=alice_headers,
        )
        assert response.status_code == 200
        assert [r["tag"] for r in response.json()] == ["B", "C"]

    def test_suggestions(self, client, alice_headers):
        response = client.post(
            "/tags/analytics/suggestions",
            json={"current_tags": ["rock"], "searches": [{"tags": ["rock", "guitar"]}], "limit": 1},
            headers=alice_headers,
        )
        assert response.status_code == 200
        assert response.json() == {"suggestions": ["guitar"]}


def test_reserved_route_names_are_plain_tags_for_analysis():
    relations = analyze_tag_relations([["audit", "rock"]], "audit")
    assert [r.tag for r in relations] == ["rock"]


def _pair(source: str, target: str, strength: float = 0.5) -> TagPair:
    return TagPair(source=source, target=target, cooccurrences=1, strength=strength)


class TestTagPairs:
    def test_strength_is_jaccard(self):
        pairs = analyze_tag_pairs([["A", "B"], ["A", "C"], ["B", "C"], ["A", "B"]], min_strength=0.0)

        assert [(p.source, p.target) for p in pairs] == [("A", "B"), ("A", "C"), ("B", "C")]
        assert pairs[0].cooccurrences == 2
        assert pairs[0].strength == pytest.approx(0.5)
        assert pairs[1].strength == pytest.approx(0.25)

    def test_default_min_strength_filters(self):
        pairs = analyze_tag_pairs([["A", "B"], ["A", "C"], ["B", "C"], ["A", "B"]])
        assert [(p.source, p.target) for p in pairs] == [("A", "B")]


class TestTagClusters:
    def test_small_groups_dropped(self):
        searches = [["a", "b", "c"], ["a", "b", "c"], ["d", "e"]]
        clusters = find_tag_clusters(analyze_tag_pairs(searches))

        assert len(clusters) == 1
        assert sorted(clusters[0].tags) == ["a", "b", "c"]
        assert clusters[0].strength == pytest.approx(1.0)

    def test_center_is_best_connected(self):
        pairs = [_pair("a", "hub", 0.4), _pair("b", "hub", 0.6), _pair("c", "hub", 0.8)]
        [cluster] = find_tag_clusters(pairs)

        assert cluster.tags == ["a", "hub", "b", "c"]
        assert cluster.center == "hub"
        assert cluster.strength == pytest.approx(0.6)

    def test_max_size_splits_chain(self):
        pairs = [_pair("a", "b", 0.9), _pair("b", "c", 0.5), _pair("c", "d", 0.5)]
        clusters = find_tag_clusters(pairs, min_cluster_size=2, max_cluster_size=2)

        assert [c.tags for c in clusters] == [["a", "b"], ["c", "d"]]

    def test_sorted_by_strength(self):
        pairs = [_pair("a", "b", 0.3), _pair("b", "c", 0.3), _pair("x", "y", 0.9), _pair("y", "z", 0.9)]
        clusters = find_tag_clusters(pairs)

        assert [c.center for c in clusters] == ["y", "b"]

    @pytest.mark.parametrize("sizes", [(0, 10), (4, 3)])
    def test_invalid_sizes(self, sizes):
        with pytest.raises(ValidationException):
            find_tag_clusters([], *sizes)

    def test_clusters_endpoint(self, client, alice_headers):
        searches = [{"tags": ["rock", "guitar", "drums"]}, {"tags": ["rock", "guitar", "drums"]}]
        response = client.post("/tags/analytics/clusters", json={"searches": searches}, headers=alice_headers)

        assert response.status_code == 200
        [cluster] = response.json()
        assert sorted(cluster["tags"]) == ["drums", "guitar", "rock"]
