"""Stateful workflows built on top of the service layer."""

from .event_feed import EventFeed  # noqa: F401

__all__ = ["EventFeed"]
