"""ROR registry adapter."""

from __future__ import annotations

from .client import RorClient
from .translator import ror_id_suffix, translate_affiliation_item

__all__ = ["RorClient", "ror_id_suffix", "translate_affiliation_item"]
