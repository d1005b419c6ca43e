"""Span-keyed token indexes."""

from .span_index import SpanIndex, TokenStore

__all__ = ["SpanIndex", "TokenStore"]
