"""Request and response contracts for the HTTP API (camelCase on the wire)."""

from xmrsplit.api.contracts.base import CamelModel

__all__ = ["CamelModel"]
