"""Location definition data structures."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(slots=True)
class LocationDef:
    """Describes a battleground and the terrain tags fighters can exploit."""

    id: str
    name: str
    terrain_tags: Tuple[str, ...]
    fragility: float = 0.5
