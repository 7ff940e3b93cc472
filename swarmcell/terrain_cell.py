"""Two-byte terrain cell encoding used by the tactical terrain map."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

TERRAIN_SIZE = 32
TERRAIN_CELLS = TERRAIN_SIZE * TERRAIN_SIZE

TERRAIN_TYPE_MASK = 0x07
TERRAIN_ELEV_SHIFT = 3
TERRAIN_ELEV_MASK = 0x38
TERRAIN_COVER_SHIFT = 6
TERRAIN_COVER_MASK = 0xC0

TERRAIN_THREAT_SHIFT = 5
TERRAIN_THREAT_MASK = 0xE0
TERRAIN_STRAT_SHIFT = 3
TERRAIN_STRAT_MASK = 0x18
TERRAIN_PASS_SHIFT = 1
TERRAIN_PASS_MASK = 0x06
TERRAIN_EXPLORED = 0x01

MAX_ELEVATION = 7


class TerrainType(IntEnum):
    """Ground type, stored in base bits 2..0."""

    OPEN = 0x00
    FOREST = 0x01
    URBAN = 0x02
    WATER = 0x03
    ROCKY = 0x04
    MARSH = 0x05
    ROAD = 0x06
    IMPASSABLE = 0x07


class Cover(IntEnum):
    """Protection rating, stored in base bits 7..6."""

    NONE = 0x00
    LOW = 0x01
    MEDIUM = 0x02
    HIGH = 0x03


class Threat(IntEnum):
    """Threat level, stored in meta bits 7..5."""

    NONE = 0x00
    UNKNOWN = 0x01
    SUSPECTED = 0x02
    DETECTED = 0x03
    CONFIRMED = 0x04
    ACTIVE = 0x05
    CRITICAL = 0x06


class Strategic(IntEnum):
    """Strategic value, stored in meta bits 4..3."""

    NONE = 0x00
    LOW = 0x01
    MEDIUM = 0x02
    HIGH = 0x03


class Passability(IntEnum):
    """Movement cost class, stored in meta bits 2..1."""

    BLOCKED = 0x00
    DIFFICULT = 0x01
    SLOW = 0x02
    NORMAL = 0x03


def _enum_or_int(kind, value: int):
    try:
        return kind(value)
    except ValueError:
        return value


def _check(name: str, value: int, limit: int) -> int:
    value = int(value)
    if not 0 <= value <= limit:
        raise ValueError(f"{name} must be in 0..{limit}, got {value}")
    return value


@dataclass(frozen=True)
class TerrainCell:
    """One terrain map cell, decoded from its base and meta bytes."""

    terrain: TerrainType = TerrainType.OPEN
    elevation: int = 0
    cover: Cover = Cover.NONE
    threat: Threat = Threat.NONE
    strategic: Strategic = Strategic.NONE
    passability: Passability = Passability.BLOCKED
    explored: bool = False

    def pack(self) -> tuple[int, int]:
        """Encode to the (base, meta) byte pair."""
        terrain = _check("terrain", self.terrain, 0x07)
        elevation = _check("elevation", self.elevation, MAX_ELEVATION)
        cover = _check("cover", self.cover, 0x03)
        threat = _check("threat", self.threat, 0x07)
        strategic = _check("strategic", self.strategic, 0x03)
        passability = _check("passability", self.passability, 0x03)

        base = (
            (cover << TERRAIN_COVER_SHIFT)
            | (elevation << TERRAIN_ELEV_SHIFT)
            | terrain
        )
        meta = (
            (threat << TERRAIN_THREAT_SHIFT)
            | (strategic << TERRAIN_STRAT_SHIFT)
            | (passability << TERRAIN_PASS_SHIFT)
            | (TERRAIN_EXPLORED if self.explored else 0)
        )
        return base, meta

    @classmethod
    def unpack(cls, base: int, meta: int) -> TerrainCell:
        """Decode a cell from its base and meta bytes."""
        base = _check("base", base, 0xFF)
        meta = _check("meta", meta, 0xFF)
        return cls(
            terrain=TerrainType(base & TERRAIN_TYPE_MASK),
            elevation=(base & TERRAIN_ELEV_MASK) >> TERRAIN_ELEV_SHIFT,
            cover=Cover((base & TERRAIN_COVER_MASK) >> TERRAIN_COVER_SHIFT),
            threat=_enum_or_int(
                Threat, (meta & TERRAIN_THREAT_MASK) >> TERRAIN_THREAT_SHIFT
            ),
            strategic=Strategic((meta & TERRAIN_STRAT_MASK) >> TERRAIN_STRAT_SHIFT),
            passability=Passability(
                (meta & TERRAIN_PASS_MASK) >> TERRAIN_PASS_SHIFT
            ),
            explored=bool(meta & TERRAIN_EXPLORED),
        )