"""Per-tick world scan: points of interest classified for targeting."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from horde.core.models import Position, Structure, TileData


@dataclass(frozen=True, slots=True)
class ScanEntry:
    """A point of interest with light metadata."""

    position: Position
    structure: Structure | None = None
    group_id: str | None = None
    unit_count: int = 0
    race: str = ""
    resource_total: int = 0

    @property
    def structure_id(self) -> str | None:
        return self.structure.id if self.structure else None


@dataclass(frozen=True, slots=True)
class WorldScan:
    """Read-only lists of points of interest, valid for one tick."""

    monster_structures: tuple[ScanEntry, ...] = ()
    player_spawns: tuple[ScanEntry, ...] = ()
    player_structures: tuple[ScanEntry, ...] = ()
    resource_hotspots: tuple[ScanEntry, ...] = ()
    monster_groups: tuple[ScanEntry, ...] = ()

    def find_structure(self, structure_id: str) -> ScanEntry | None:
        for entries in (self.monster_structures, self.player_structures, self.player_spawns):
            for entry in entries:
                if entry.structure_id == structure_id:
                    return entry
        return None


def scan_tiles(tiles: Iterable[TileData]) -> WorldScan:
    """Classify loaded tiles into a WorldScan.

    Spawns are player spawns; monster-flagged, monster-owned or
    monster-typed structures are monster structures; any other structure is
    a player structure.
    """
    monster_structures: list[ScanEntry] = []
    player_spawns: list[ScanEntry] = []
    player_structures: list[ScanEntry] = []
    hotspots: list[ScanEntry] = []
    monster_groups: list[ScanEntry] = []

    for tile in tiles:
        s = tile.structure
        if s is not None:
            entry = ScanEntry(tile.position, structure=s)
            if s.is_spawn:
                player_spawns.append(entry)
            elif s.is_monster_owned:
                monster_structures.append(entry)
            else:
                player_structures.append(entry)
        if tile.resources:
            hotspots.append(ScanEntry(tile.position, resource_total=sum(tile.resources.values())))
        for group in tile.groups.values():
            if group.is_monster:
                monster_groups.append(ScanEntry(
                    tile.position, group_id=group.id,
                    unit_count=group.unit_count, race=group.race,
                ))

    def key(e: ScanEntry) -> tuple[int, int, str]:
        return (e.position.x, e.position.y, e.group_id or "")

    return WorldScan(
        monster_structures=tuple(sorted(monster_structures, key=key)),
        player_spawns=tuple(sorted(player_spawns, key=key)),
        player_structures=tuple(sorted(player_structures, key=key)),
        resource_hotspots=tuple(sorted(hotspots, key=key)),
        monster_groups=tuple(sorted(monster_groups, key=key)),
    )
