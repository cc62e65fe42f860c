"""Shared fixtures."""

import pytest

from py_parkour.core.materials import Material, MaterialCollection, MaterialKind, Palette
from py_parkour.utils.random import set_random_seed


@pytest.fixture(autouse=True)
def seeded_rng():
    """Seed the shared generator so every test is reproducible."""
    set_random_seed(12345)
    yield
    set_random_seed(None)


@pytest.fixture
def palette():
    """Palette covering the names used by the generator tests."""
    palette = Palette()
    palette.add("platform", MaterialCollection.of(Material("stone")))
    palette.add("walls", MaterialCollection.of(Material("bricks")))
    palette.add("grass", MaterialCollection.of(Material("grass_block")))
    palette.add("dirt", MaterialCollection.of(Material("dirt")))
    palette.add("stone", MaterialCollection.of(Material("stone")))
    palette.add("water", MaterialCollection.of(Material("water", MaterialKind.LIQUID)))
    palette.add("floor", MaterialCollection.of(Material("oak_planks")))
    palette.add("on", MaterialCollection.of(Material("lime_concrete")))
    palette.add("off", MaterialCollection.of(Material("red_concrete")))
    palette.add("snake", MaterialCollection.of(Material("cyan_wool")))
    palette.add("path", MaterialCollection.of(Material("prismarine_bricks")))
    palette.add("filler", MaterialCollection.of(Material("sea_lantern")))
    palette.add("slab", MaterialCollection.of(Material("stone_slab")))
    palette.add("slime", MaterialCollection.of(Material("slime_block")))
    palette.add("stairs", MaterialCollection.of(Material("stone_stairs", properties=(("facing", "north"),))))
    return palette


@pytest.fixture
def built_palette(palette):
    return palette.build()
