"""
Materials and the palette resolver.

A palette maps symbolic names ("walls", "grass", "platform") to weighted
collections of concrete materials. Generators only ever see names; the theme
decides what they look like.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Sequence, Tuple

import structlog

from .weighted import WeightedList

logger = structlog.get_logger()

PropertyPairs = Tuple[Tuple[str, str], ...]


class MaterialKind(str, Enum):
    SOLID = "solid"
    LIQUID = "liquid"
    AIR = "air"


@dataclass(frozen=True)
class Material:
    """An opaque cell content identifier plus orientation properties."""

    name: str
    kind: MaterialKind = MaterialKind.SOLID
    properties: PropertyPairs = ()

    @property
    def is_solid(self) -> bool:
        return self.kind is MaterialKind.SOLID

    @property
    def is_liquid(self) -> bool:
        return self.kind is MaterialKind.LIQUID

    def with_properties(self, properties: PropertyPairs) -> "Material":
        """Return a copy with ``properties`` overriding existing keys."""
        if not properties:
            return self
        merged = dict(self.properties)
        merged.update(properties)
        return Material(self.name, self.kind, tuple(sorted(merged.items())))


AIR = Material("air", MaterialKind.AIR)


class UnknownMaterialError(KeyError):
    """Raised when a palette has no collection for a name."""


# Property transforms for oriented materials
_ROTATE_CW_VALUES = {
    "north": "east", "east": "south", "south": "west", "west": "north",
    "ascending_north": "ascending_east", "ascending_east": "ascending_south",
    "ascending_south": "ascending_west", "ascending_west": "ascending_north",
    "up_north": "up_east", "up_east": "up_south", "up_south": "up_west", "up_west": "up_north",
    "north_up": "east_up", "east_up": "south_up", "south_up": "west_up", "west_up": "north_up",
    "down_north": "down_east", "down_east": "down_south",
    "down_south": "down_west", "down_west": "down_north",
    "north_east": "south_east", "south_east": "south_west",
    "south_west": "north_west", "north_west": "north_east",
    "north_south": "east_west", "east_west": "north_south",
    "x": "z", "z": "x",
}

_FLIP_X_VALUES = {
    "east": "west", "west": "east",
    "ascending_east": "ascending_west", "ascending_west": "ascending_east",
    "up_east": "up_west", "up_west": "up_east",
    "east_up": "west_up", "west_up": "east_up",
    "down_east": "down_west", "down_west": "down_east",
    "north_east": "north_west", "north_west": "north_east",
    "south_east": "south_west", "south_west": "south_east",
}

_VALUE_PROPERTIES = {"facing", "axis", "orientation", "shape"}
_SIDE_ROTATE_CW = {"north": "east", "east": "south", "south": "west", "west": "north"}
_SIDE_FLIP_X = {"east": "west", "west": "east"}


def rotate_property_cw(name: str, value: str) -> Tuple[str, str]:
    """Rotate one (name, value) property pair 90 degrees clockwise."""
    if name in _VALUE_PROPERTIES:
        return name, _ROTATE_CW_VALUES.get(value, value)
    if name in _SIDE_ROTATE_CW:
        return _SIDE_ROTATE_CW[name], value
    return name, value


def flip_property_x(name: str, value: str) -> Tuple[str, str]:
    """Mirror one (name, value) property pair along the x axis."""
    if name in _VALUE_PROPERTIES:
        return name, _FLIP_X_VALUES.get(value, value)
    if name in _SIDE_FLIP_X:
        return _SIDE_FLIP_X[name], value
    return name, value


@dataclass(frozen=True)
class CellSpec:
    """A palette name plus property overrides, resolved lazily."""

    name: str
    properties: PropertyPairs = ()

    def rotate_cw(self) -> "CellSpec":
        return CellSpec(self.name, tuple(rotate_property_cw(n, v) for n, v in self.properties))

    def flip_x(self) -> "CellSpec":
        return CellSpec(self.name, tuple(flip_property_x(n, v) for n, v in self.properties))

    def resolve(self, palette: "BuiltPalette") -> Material:
        return palette.get(self.name, self.properties)


@dataclass
class MaterialCollection:
    """
    Weighted choice of materials for one palette name.

    If ``uniform`` is set, one material is picked when the palette is built
    and reused for every cell; otherwise every lookup picks again.
    """

    materials: WeightedList[Material]
    uniform: bool = False

    @classmethod
    def of(cls, *materials: Material, uniform: bool = False) -> "MaterialCollection":
        return cls(WeightedList((m, 1.0) for m in materials), uniform)


@dataclass
class Palette:
    """Unbuilt name -> collection map, part of a theme's configuration."""

    collections: Dict[str, MaterialCollection] = field(default_factory=dict)

    def add(self, name: str, collection: MaterialCollection) -> None:
        self.collections[name] = collection

    def build(self) -> "BuiltPalette":
        """Fix the uniform choices for one generation."""
        indices = {
            name: collection.materials.get_random_index() if collection.uniform else None
            for name, collection in self.collections.items()
        }
        return BuiltPalette(self.collections, indices)


class BuiltPalette:
    """Resolver handed to generators; fails fast on unknown names."""

    def __init__(
        self,
        collections: Mapping[str, MaterialCollection],
        uniform_indices: Mapping[str, Optional[int]],
    ):
        self._collections = dict(collections)
        self._indices = dict(uniform_indices)

    def __contains__(self, name: str) -> bool:
        return name in self._collections

    def names(self) -> Sequence[str]:
        return tuple(self._collections)

    def get(self, name: str, properties: PropertyPairs = ()) -> Material:
        collection = self._collections.get(name)
        if collection is None:
            logger.error("Unknown material name", name=name)
            raise UnknownMaterialError(name)

        index = self._indices.get(name)
        if index is not None:
            material = collection.materials[index]
        else:
            material = collection.materials.get_random()
        return material.with_properties(properties)

    def is_liquid(self, name: str) -> bool:
        """True if the collection is exactly one liquid material."""
        collection = self._collections.get(name)
        if collection is None:
            raise UnknownMaterialError(name)
        materials = list(collection.materials)
        return len(materials) == 1 and materials[0].is_liquid
