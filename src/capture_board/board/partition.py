"""Board model: partition opportunities by stage and summarize each column."""

from typing import Iterable, Union

from pydantic import BaseModel, Field

from capture_board.models.opportunity import Opportunity
from capture_board.stages import StageCatalog, Taxonomy, get_catalog


class BucketSummary(BaseModel):
    """Column header figures for one stage."""

    stage: str
    label: str
    count: int = 0
    total_value: float = 0.0
    avg_win_probability: int = Field(
        default=0,
        description="Mean win probability in whole percent (forecast board only)",
    )


def stage_of(record: Opportunity, taxonomy: Union[Taxonomy, str, StageCatalog]) -> str:
    """Stage a record occupies in a taxonomy (default stage if its value is absent or unknown)."""
    catalog = taxonomy if isinstance(taxonomy, StageCatalog) else get_catalog(taxonomy)
    return catalog.resolve(getattr(record, catalog.field))


def partition(
    records: Iterable[Opportunity],
    taxonomy: Union[Taxonomy, str],
) -> dict[str, list[Opportunity]]:
    """
    Group records into one bucket per stage, keyed in catalog order.
    Every record lands in exactly one bucket. Within a bucket records are ordered by
    descending priority; equal priorities keep their input order.
    """
    catalog = get_catalog(taxonomy)
    buckets: dict[str, list[Opportunity]] = {stage_id: [] for stage_id in catalog.ids()}
    for record in records:
        buckets[stage_of(record, catalog)].append(record)
    for stage_id, bucket in buckets.items():
        # sorted() is stable, so ties keep list position
        buckets[stage_id] = sorted(bucket, key=lambda r: r.priority, reverse=True)
    return buckets


def aggregate(
    records: Iterable[Opportunity],
    taxonomy: Union[Taxonomy, str],
) -> dict[str, BucketSummary]:
    """Per-stage count, total value and (forecast only) mean win probability."""
    catalog = get_catalog(taxonomy)
    summaries: dict[str, BucketSummary] = {}
    for stage_id, bucket in partition(records, catalog.taxonomy).items():
        avg_win = 0
        if catalog.taxonomy is Taxonomy.FORECAST and bucket:
            mean = sum(r.win_probability for r in bucket) / len(bucket)
            avg_win = int(mean + 0.5)
        summaries[stage_id] = BucketSummary(
            stage=stage_id,
            label=catalog.label(stage_id),
            count=len(bucket),
            total_value=sum(r.value for r in bucket),
            avg_win_probability=avg_win,
        )
    return summaries
