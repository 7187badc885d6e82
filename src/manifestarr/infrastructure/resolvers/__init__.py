"""Live resolvers for turning identifiers into manifest URLs."""

from .link_resolver import BrowserLinkResolver

__all__ = ["BrowserLinkResolver"]
