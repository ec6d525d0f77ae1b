"""Cadence Templates Module - Reusable permission bundles."""

from cadence.modules.templates.router import router
from cadence.modules.templates.service import TemplatesService

__all__ = ["router", "TemplatesService"]
