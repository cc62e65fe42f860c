"""
Themes: which generators a course uses and what they are made of.
"""

from dataclasses import dataclass
from typing import Optional

from .generators.base import SegmentGenerator
from .generators.single import SingleGenerator
from .materials import BuiltPalette, Palette
from .weighted import EmptyCollectionError, WeightedList


@dataclass(frozen=True)
class Theme:
    """
    Weighted generators plus the palette they draw materials from.

    ``fallback`` names the palette entry used for single cells when no
    generator fits; it defaults to the first palette entry. Construction fails
    if there is nothing to choose from or a generator uses a name the palette
    does not define.
    """

    name: str
    generators: WeightedList[SegmentGenerator]
    palette: Palette
    fallback: Optional[str] = None

    def __post_init__(self):
        if not len(self.generators) or self.generators.total_weight() <= 0:
            raise EmptyCollectionError(f"Theme {self.name!r} has no generators")
        if not self.palette.collections:
            raise EmptyCollectionError(f"Theme {self.name!r} has an empty palette")

        for name, collection in self.palette.collections.items():
            if not len(collection.materials) or collection.materials.total_weight() <= 0:
                raise EmptyCollectionError(f"Theme {self.name!r} has an empty collection {name!r}")

        names = self.palette.collections.keys()
        for generator in self.generators:
            generator.validate(names)

        if self.fallback is not None and self.fallback not in names:
            raise ValueError(f"Theme {self.name!r} fallback {self.fallback!r} is not in the palette")

    def random_generator(self) -> SegmentGenerator:
        return self.generators.get_random()

    def fallback_generator(self) -> SingleGenerator:
        name = self.fallback if self.fallback is not None else next(iter(self.palette.collections))
        return SingleGenerator(name)

    def build_palette(self) -> BuiltPalette:
        return self.palette.build()
