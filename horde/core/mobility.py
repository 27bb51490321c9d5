"""Terrain traversal capability derived from a group's ``motion`` set."""

from __future__ import annotations

from enum import Enum, unique
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from horde.core.models import Group


@unique
class Mobility(Enum):
    LAND = "land"
    WATER = "water"
    AMPHIBIOUS = "amphibious"

    @property
    def traverses_land(self) -> bool:
        return self is not Mobility.WATER

    @property
    def traverses_water(self) -> bool:
        return self is not Mobility.LAND

    def allows(self, is_water: bool) -> bool:
        """Whether a tile of the given kind can be entered."""
        return self.traverses_water if is_water else self.traverses_land


def mobility_of(motion: Iterable[str] | None) -> Mobility:
    """Classify a motion set; missing motion means land-only."""
    modes = {m.lower() for m in (motion or ())}
    if "flight" in modes or "air" in modes:
        return Mobility.AMPHIBIOUS
    if "water" in modes and "land" in modes:
        return Mobility.AMPHIBIOUS
    if "water" in modes:
        return Mobility.WATER
    return Mobility.LAND


def can_traverse_water(group: Group) -> bool:
    return mobility_of(group.motion).traverses_water


def can_traverse_land(group: Group) -> bool:
    return mobility_of(group.motion).traverses_land
