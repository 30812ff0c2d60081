"""Pure catalog adapter."""

from __future__ import annotations

from .client import PureClient
from .translator import parse_identifier, serialize_identifier, translate_external_organization

__all__ = [
    "PureClient",
    "parse_identifier",
    "serialize_identifier",
    "translate_external_organization",
]
