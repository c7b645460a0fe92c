"""Repository for battle locations."""
from __future__ import annotations

from typing import Dict

from duelsim.data.errors import DataValidationError
from duelsim.data.repositories.base import RepositoryBase
from duelsim.domain.defs import LocationDef


class LocationsRepository(RepositoryBase[LocationDef]):
    """Loads and validates location definitions."""

    def __init__(self, base_path=None) -> None:
        super().__init__("locations.json", base_path)

    def _build(self, raw: dict[str, object]) -> Dict[str, LocationDef]:
        definitions: Dict[str, LocationDef] = {}
        for location_id, payload in raw.items():
            if not isinstance(location_id, str) or not location_id.strip():
                raise DataValidationError("location id must be a non-empty string.")
            mapping = self._require_mapping(payload, f"location '{location_id}'")
            name = self._require_str(mapping.get("name"), f"location '{location_id}' name").strip()
            tags = tuple(
                self._require_str_list(mapping.get("terrain_tags"), f"location '{location_id}' terrain_tags")
            )
            if any(tag.lower() != tag for tag in tags):
                raise DataValidationError(f"location '{location_id}' terrain_tags must be lowercase.")
            fragility = self._require_unit_interval(
                mapping.get("fragility", 0.5), f"location '{location_id}' fragility"
            )
            definitions[location_id] = LocationDef(
                id=location_id,
                name=name,
                terrain_tags=tags,
                fragility=fragility,
            )
        return definitions
