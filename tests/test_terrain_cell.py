import itertools

import pytest

from swarmcell.terrain_cell import (
    TERRAIN_COVER_MASK,
    TERRAIN_ELEV_MASK,
    TERRAIN_EXPLORED,
    TERRAIN_PASS_MASK,
    TERRAIN_STRAT_MASK,
    TERRAIN_THREAT_MASK,
    Cover,
    Passability,
    Strategic,
    TerrainCell,
    TerrainType,
    Threat,
)


def test_default_cell_is_all_zero():
    assert TerrainCell().pack() == (0, 0)
    assert TerrainCell.unpack(0, 0) == TerrainCell()


def test_explored_flag_is_bit_zero_of_meta():
    base, meta = TerrainCell(explored=True).pack()
    assert base == 0
    assert meta == TERRAIN_EXPLORED


def test_fields_stay_within_their_masks():
    cell = TerrainCell(
        terrain=TerrainType.IMPASSABLE,
        elevation=7,
        cover=Cover.HIGH,
        threat=Threat.CRITICAL,
        strategic=Strategic.HIGH,
        passability=Passability.NORMAL,
        explored=True,
    )
    base, meta = cell.pack()
    assert base & 0x07 == TerrainType.IMPASSABLE
    assert base & TERRAIN_ELEV_MASK == TERRAIN_ELEV_MASK
    assert base & TERRAIN_COVER_MASK == TERRAIN_COVER_MASK
    assert meta & TERRAIN_STRAT_MASK == TERRAIN_STRAT_MASK
    assert meta & TERRAIN_PASS_MASK == TERRAIN_PASS_MASK
    assert (meta & TERRAIN_THREAT_MASK) >> 5 == Threat.CRITICAL


@pytest.mark.parametrize(
    "terrain,elevation,cover",
    list(itertools.product(TerrainType, range(8), Cover)),
)
def test_base_round_trip(terrain, elevation, cover):
    cell = TerrainCell(terrain=terrain, elevation=elevation, cover=cover)
    base, meta = cell.pack()
    assert TerrainCell.unpack(base, meta) == cell


@pytest.mark.parametrize(
    "threat,strategic,passability,explored",
    list(itertools.product(Threat, Strategic, Passability, (False, True))),
)
def test_meta_round_trip(threat, strategic, passability, explored):
    cell = TerrainCell(
        threat=threat,
        strategic=strategic,
        passability=passability,
        explored=explored,
    )
    assert TerrainCell.unpack(*cell.pack()) == cell


def test_every_byte_pair_repacks_to_itself():
    for base in range(256):
        for meta in (0x00, 0x5B, 0xA6, 0xFF):
            assert TerrainCell.unpack(base, meta).pack() == (base, meta)


def test_unpack_yields_enum_members():
    cell = TerrainCell.unpack(*TerrainCell(terrain=TerrainType.ROAD).pack())
    assert cell.terrain is TerrainType.ROAD


@pytest.mark.parametrize("elevation", [-1, 8])
def test_elevation_out_of_range(elevation):
    with pytest.raises(ValueError):
        TerrainCell(elevation=elevation).pack()


@pytest.mark.parametrize("base,meta", [(256, 0), (0, 256), (-1, 0)])
def test_unpack_rejects_non_bytes(base, meta):
    with pytest.raises(ValueError):
        TerrainCell.unpack(base, meta)