"""Cadence Core - Persistence collaborators for tag governance."""

from functools import lru_cache

from cadence.config import get_settings
from cadence.core.memory_store import InMemoryStore
from cadence.core.store import GovernanceStore


@lru_cache
def get_store() -> GovernanceStore:
    """Get the configured governance store singleton."""
    settings = get_settings()
    if settings.governance.storage_backend == "supabase":
        from cadence.core.supabase_store import SupabaseStore

        return SupabaseStore()
    return InMemoryStore(snapshot_path=settings.governance.snapshot_path)


__all__ = ["GovernanceStore", "InMemoryStore", "get_store"]
