# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Group-wise stop, search and hit rate aggregation.

Observations are partitioned by a list of selector functions. Each distinct
group key receives a summary holding the stop, search and contraband-hit
counts plus the derived search and hit rates. Rates with a zero denominator
are undefined, which is kept distinct from a rate of zero.

Groups are emitted in the order their key first appears in the input.
"""

from dataclasses import dataclass, field
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

logger = logging.getLogger(__name__)

GroupKey = tuple
Selector = Callable[["Observation"], Any]

SUMMARY_COLUMNS = ["n_stops", "n_searches", "n_hits", "search_rate", "hit_rate"]


@dataclass(frozen=True)
class Observation:
    """A single traffic stop"""

    search_conducted: bool
    contraband_found: Optional[bool] = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_hit(self) -> bool:
        """Contraband found during a search. Unsearched stops are never hits."""
        return bool(self.search_conducted) and self.contraband_found is True


@dataclass(frozen=True)
class Rate:
    """A ratio that is undefined when its denominator is zero"""

    numerator: int
    denominator: int

    @property
    def defined(self) -> bool:
        return self.denominator > 0

    @property
    def value(self) -> Optional[float]:
        """The ratio, or None when undefined."""
        if not self.defined:
            return None
        return self.numerator / self.denominator

    def __repr__(self):
        if not self.defined:
            return f"Rate({self.numerator}/{self.denominator}, undefined)"
        return f"Rate({self.numerator}/{self.denominator}={self.value:.3f})"


@dataclass(frozen=True)
class GroupSummary:
    """Counts and rates for one group of stops"""

    n_stops: int
    n_searches: int
    n_hits: int

    def __post_init__(self):
        if not 0 <= self.n_hits <= self.n_searches <= self.n_stops:
            raise ValueError(
                "Expected 0 <= n_hits <= n_searches <= n_stops, got "
                f"n_hits={self.n_hits}, n_searches={self.n_searches}, "
                f"n_stops={self.n_stops}"
            )

    @property
    def search_rate(self) -> Rate:
        return Rate(self.n_searches, self.n_stops)

    @property
    def hit_rate(self) -> Rate:
        return Rate(self.n_hits, self.n_searches)

    def as_record(self) -> Dict[str, Any]:
        """Flatten to plain values, with undefined rates as None."""
        return {
            "n_stops": self.n_stops,
            "n_searches": self.n_searches,
            "n_hits": self.n_hits,
            "search_rate": self.search_rate.value,
            "hit_rate": self.hit_rate.value,
        }


def attribute(name: str) -> Selector:
    """
    Build a selector reading one grouping attribute of an observation.

    Args:
        name: Attribute name (e.g. "driver_race")

    Returns:
        Callable returning the attribute value, or None when absent
    """

    def select(observation: Observation) -> Any:
        return observation.attributes.get(name)

    select.__name__ = name
    return select


def is_missing(value: Any) -> bool:
    """Return True for None, NaN, pd.NA and NaT."""
    if value is None:
        return True
    if not pd.api.types.is_scalar(value):
        return False
    return bool(pd.isna(value))


def aggregate(
    observations: Iterable[Observation], group_by: Sequence[Selector]
) -> List[tuple[GroupKey, GroupSummary]]:
    """
    Aggregate observations into per-group stop, search and hit counts.

    Observations with a missing value for any selector are excluded. With no
    selectors, all observations fall into the single group ``()``.

    Args:
        observations: Stops to aggregate
        group_by: Selectors whose results form the group key, in order

    Returns:
        List of (group key, summary) pairs in first-appearance order of the
        key. Empty when no observation remains after exclusion.
    """
    counters: Dict[GroupKey, List[int]] = {}
    excluded = 0

    for observation in observations:
        key = tuple(select(observation) for select in group_by)
        if any(is_missing(value) for value in key):
            excluded += 1
            continue

        counts = counters.setdefault(key, [0, 0, 0])
        counts[0] += 1
        if observation.search_conducted:
            counts[1] += 1
        if observation.is_hit:
            counts[2] += 1

    if excluded:
        logger.debug("Excluded %d observations with missing group values", excluded)

    return [
        (key, GroupSummary(n_stops=stops, n_searches=searches, n_hits=hits))
        for key, (stops, searches, hits) in counters.items()
    ]


def observations_from_frame(
    stops_df: pd.DataFrame, attributes: Sequence[str]
) -> List[Observation]:
    """
    Build observations from a stops dataframe.

    Args:
        stops_df: DataFrame with search_conducted, contraband_found and the
            attribute columns. A missing search_conducted reads as no search.
        attributes: Columns to carry as grouping attributes

    Returns:
        One Observation per row
    """
    observations = []
    for row in stops_df.to_dict(orient="records"):
        searched = row["search_conducted"]
        contraband = row.get("contraband_found")
        observations.append(
            Observation(
                search_conducted=False if is_missing(searched) else bool(searched),
                contraband_found=None if is_missing(contraband) else bool(contraband),
                attributes={name: row.get(name) for name in attributes},
            )
        )
    return observations


def to_frame(
    results: Sequence[tuple[GroupKey, GroupSummary]], names: Sequence[str]
) -> pd.DataFrame:
    """
    Convert aggregation results to a summary dataframe.

    Args:
        results: Output of aggregate()
        names: Column names for the group key components

    Returns:
        DataFrame with the key columns followed by SUMMARY_COLUMNS. Rates use
        the nullable Float64 dtype so undefined rates are pd.NA.
    """
    rows = []
    for key, summary in results:
        row = dict(zip(names, key))
        row.update(summary.as_record())
        rows.append(row)

    summary_df = pd.DataFrame(rows, columns=[*names, *SUMMARY_COLUMNS])
    summary_df[["n_stops", "n_searches", "n_hits"]] = summary_df[
        ["n_stops", "n_searches", "n_hits"]
    ].astype("int64")
    for rate_col in ("search_rate", "hit_rate"):
        summary_df[rate_col] = summary_df[rate_col].astype("Float64")
    return summary_df
