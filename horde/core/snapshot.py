"""Immutable tick-scoped snapshot shared by all decision workers."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from horde.core.models import Group, MalformedRecordError, Position, TileData
from horde.core.terrain import TerrainOracle, TerrainView
from horde.core.world_scan import WorldScan, scan_tiles

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TickSnapshot:
    """Read-only view of the loaded world for one tick.

    Every external read (chunks, scan, terrain) is resolved here before
    any decision runs, so decisions for different groups never observe
    each other's writes.
    """

    tick: int
    now: int
    world_id: str
    chunk_size: int
    chunks: Mapping[str, Mapping[str, Any]]
    tiles: Mapping[str, TileData]
    scan: WorldScan
    terrain: TerrainView
    malformed: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        chunks: Mapping[str, Mapping[str, Any]],
        oracle: TerrainOracle,
        *,
        tick: int,
        now: int,
        world_id: str = "default",
        chunk_size: int = 20,
        water_threshold: float = 0.2,
        scan: WorldScan | None = None,
    ) -> TickSnapshot:
        copied = copy.deepcopy(dict(chunks))
        tiles: dict[str, TileData] = {}
        malformed: set[str] = set()
        for chunk_key, chunk in copied.items():
            for tile_key, data in (chunk or {}).items():
                try:
                    tiles[tile_key] = TileData.from_record(tile_key, data)
                except (MalformedRecordError, KeyError, TypeError, ValueError) as exc:
                    logger.warning("Skipping malformed tile %s/%s: %s", chunk_key, tile_key, exc)
                    malformed.add(tile_key)
        return cls(
            tick=tick,
            now=now,
            world_id=world_id,
            chunk_size=chunk_size,
            chunks=MappingProxyType(copied),
            tiles=MappingProxyType(tiles),
            scan=scan if scan is not None else scan_tiles(tiles.values()),
            terrain=TerrainView(oracle, water_threshold),
            malformed=frozenset(malformed),
        )

    def tile(self, x: int, y: int) -> TileData | None:
        key = f"{x},{y}"
        if key in self.malformed:
            raise MalformedRecordError(f"Tile {key} could not be parsed")
        return self.tiles.get(key)

    def tile_at(self, pos: Position) -> TileData | None:
        return self.tile(pos.x, pos.y)

    def monster_groups(self) -> list[Group]:
        """All monster groups on loaded tiles, ordered by id."""
        groups = [g for t in self.tiles.values() for g in t.groups.values() if g.is_monster]
        groups.sort(key=lambda g: g.id)
        return groups
