from __future__ import annotations

from .base import Flavor
from .paper_family import PaperFamilyFlavor, paper_project
from .purpur import PurpurFlavor, purpur


def create_flavor_registry() -> dict[str, Flavor]:
    flavors: list[Flavor] = [
        paper_project("paper"),
        paper_project("folia"),
        paper_project("velocity"),
        paper_project("waterfall"),
        purpur(),
    ]
    return {flavor.name: flavor for flavor in flavors}


__all__ = [
    "Flavor",
    "PaperFamilyFlavor",
    "PurpurFlavor",
    "create_flavor_registry",
]
