"""
Cadence - Dependency Injection.

FastAPI dependencies for feature flags.
"""

from typing import Annotated

from fastapi import Depends

from cadence.config import FeatureFlags, Settings, get_settings
from cadence.exceptions import FeatureDisabledException


# =============================================================================
# Settings Dependencies
# =============================================================================


def get_features(settings: Annotated[Settings, Depends(get_settings)]) -> FeatureFlags:
    """Get feature flags from settings."""
    return settings.features


# =============================================================================
# Feature Flag Guards
# =============================================================================


def require_feature(feature_name: str):
    """Create a dependency that requires a specific feature to be enabled."""

    def check_feature(features: Annotated[FeatureFlags, Depends(get_features)]) -> bool:
        if not getattr(features, feature_name, False):
            raise FeatureDisabledException(feature_name)
        return True

    return check_feature


# Specific feature guards
require_hierarchy = Depends(require_feature("hierarchy"))
require_permissions = Depends(require_feature("permissions"))
require_templates = Depends(require_feature("templates"))
require_audit = Depends(require_feature("audit"))
require_versions = Depends(require_feature("versions"))
require_analytics = Depends(require_feature("analytics"))
require_notifications = Depends(require_feature("notifications"))
