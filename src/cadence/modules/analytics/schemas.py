"""
Cadence Analytics - Schemas.
"""

from pydantic import BaseModel, Field


class SavedSearch(BaseModel):
    """A saved search; only its tags matter for correlation."""

    id: str | None = None
    name: str | None = None
    tags: list[str] = Field(default_factory=list)


class TagRelation(BaseModel):
    """How strongly a tag co-occurs with the target tag."""

    tag: str
    cooccurrences: int
    correlation: float = Field(..., ge=0.0, le=1.0)


class CorrelationRequest(BaseModel):
    target_tag: str = Field(..., min_length=1)
    searches: list[SavedSearch]
    limit: int | None = Field(default=None, ge=1, le=100)


class SuggestionRequest(BaseModel):
    current_tags: list[str] = Field(..., min_length=1)
    searches: list[SavedSearch]
    limit: int | None = Field(default=None, ge=1, le=100)


class SuggestionResponse(BaseModel):
    suggestions: list[str]


class TagPair(BaseModel):
    """Jaccard strength of one unordered tag pair; source sorts before target."""

    source: str
    target: str
    cooccurrences: int
    strength: float = Field(..., ge=0.0, le=1.0)


class TagCluster(BaseModel):
    """Tags connected through strong pairs, with the best-connected one as center."""

    tags: list[str]
    strength: float
    center: str


class PairRequest(BaseModel):
    searches: list[SavedSearch]
    min_strength: float = Field(default=0.3, ge=0.0, le=1.0)


class ClusterRequest(PairRequest):
    min_cluster_size: int = Field(default=3, ge=1)
    max_cluster_size: int = Field(default=10, ge=1)
