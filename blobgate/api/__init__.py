"""HTTP boundary of the upload gateway."""

from .app import STATUS_BY_KIND, create_app

__all__ = ["STATUS_BY_KIND", "create_app"]
