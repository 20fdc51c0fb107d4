"""Stage catalog templates.

Starting catalogs an administrator can seed for a chain/purpose instead of
creating each stage by hand.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class StageTemplate:
    code: str
    name: str
    sort_order: int
    is_terminal: bool = False


@dataclass(frozen=True)
class CatalogTemplate:
    chain: str
    purpose: str | None
    stages: tuple[StageTemplate, ...]


STAGE_TEMPLATES: dict[str, CatalogTemplate] = {
    "poultry-laying": CatalogTemplate(
        chain="poultry",
        purpose="laying",
        stages=(
            StageTemplate("INCUBATION", "Incubation", 0),
            StageTemplate("BROODING", "Brooding", 1),
            StageTemplate("REARING", "Rearing", 2),
            StageTemplate("LAYING", "Laying", 3),
            StageTemplate("CULLED", "Culled", 4, is_terminal=True),
        ),
    ),
    "poultry-meat": CatalogTemplate(
        chain="poultry",
        purpose="meat",
        stages=(
            StageTemplate("INCUBATION", "Incubation", 0),
            StageTemplate("BROODING", "Brooding", 1),
            StageTemplate("GROWING", "Growing", 2),
            StageTemplate("FINISHED", "Finished", 3, is_terminal=True),
        ),
    ),
    "swine": CatalogTemplate(
        chain="swine",
        purpose=None,
        stages=(
            StageTemplate("FARROWING", "Farrowing", 0),
            StageTemplate("NURSERY", "Nursery", 1),
            StageTemplate("GROWING", "Growing", 2),
            StageTemplate("FINISHING", "Finishing", 3),
            StageTemplate("SLAUGHTER", "Slaughter", 4, is_terminal=True),
        ),
    ),
}


def get_catalog_template(name: str) -> CatalogTemplate:
    """Return the named template.

    Raises:
        KeyError: unknown template name
    """
    return STAGE_TEMPLATES[name]
