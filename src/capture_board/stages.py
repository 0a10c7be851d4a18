"""Stage catalogs for the two board taxonomies.

Primary pipeline: the sales stages an opportunity moves through on the leads board.
Forecast: the triage columns of the forecast board.

Each opportunity carries one stage per taxonomy; the catalogs are static and the
first entry of each is the default for records with a missing or unknown value.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Union


class Taxonomy(str, Enum):
    """The two independent stage enumerations."""

    PRIMARY = "primary"
    FORECAST = "forecast"


@dataclass(frozen=True)
class StageDef:
    """One column of a board."""

    id: str
    label: str


@dataclass(frozen=True)
class StageCatalog:
    """Ordered stages of one taxonomy and the record field they govern."""

    taxonomy: Taxonomy
    field: str
    stages: tuple[StageDef, ...]

    def ids(self) -> list[str]:
        return [s.id for s in self.stages]

    @property
    def default(self) -> str:
        return self.stages[0].id

    def label(self, stage_id: str) -> str:
        """Display label for a stage id; unknown ids are shown as-is."""
        for s in self.stages:
            if s.id == stage_id:
                return s.label
        return stage_id

    def resolve(self, value: str | None) -> str:
        """Stage id a record value belongs to (default stage when absent or unknown)."""
        return value if value in self else self.default

    def __contains__(self, stage_id: object) -> bool:
        return any(s.id == stage_id for s in self.stages)

    def __iter__(self) -> Iterator[StageDef]:
        return iter(self.stages)

    def __len__(self) -> int:
        return len(self.stages)


# fmt: off
PRIMARY_CATALOG = StageCatalog(
    taxonomy=Taxonomy.PRIMARY,
    field="stage",
    stages=(
        StageDef("opp sourced", "Opportunity Sourced"),
        StageDef("opp Nurturing", "Opportunity Nurturing"),
        StageDef("opp qualified", "Opportunity Qualified"),
        StageDef("opp in-progress", "Opportunity In-Progress"),
        StageDef("Win", "Win"),
        StageDef("lost", "Lost"),
    ),
)

FORECAST_CATALOG = StageCatalog(
    taxonomy=Taxonomy.FORECAST,
    field="forecast_stage",
    stages=(
        StageDef("Source", "Sourced"),
        StageDef("High Priority", "High Priority"),
        StageDef("Low Priority", "Low Priority"),
    ),
)
# fmt: on

CATALOGS: dict[Taxonomy, StageCatalog] = {
    Taxonomy.PRIMARY: PRIMARY_CATALOG,
    Taxonomy.FORECAST: FORECAST_CATALOG,
}


def get_catalog(taxonomy: Union[Taxonomy, str]) -> StageCatalog:
    """Catalog for a taxonomy (enum member or its name). Unknown names raise ValueError."""
    try:
        key = Taxonomy(taxonomy.lower() if isinstance(taxonomy, str) else taxonomy)
    except ValueError:
        raise ValueError(
            f"Unknown taxonomy: {taxonomy}. Available: {[t.value for t in Taxonomy]}"
        ) from None
    return CATALOGS[key]
