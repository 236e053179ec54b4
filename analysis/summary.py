# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Vectorised summary statistics over a stops dataframe.

``summary_stats`` produces the same table as ``rates.aggregate`` followed by
``rates.to_frame``, using a pandas groupby instead of a Python loop.
"""

import logging
from typing import Dict, List, Sequence

import pandas as pd

from analysis.rates import SUMMARY_COLUMNS

logger = logging.getLogger(__name__)


def _as_flag(series: pd.Series) -> pd.Series:
    """Coerce a nullable boolean column to plain bool, with NA as False."""
    return series.astype("boolean").fillna(False).astype(bool)


def _rate(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    """Divide counts, leaving pd.NA where the denominator is zero."""
    return (numerator / denominator.where(denominator > 0)).astype("Float64")


def _empty_summary(group_cols: List[str]) -> pd.DataFrame:
    empty_df = pd.DataFrame(columns=[*group_cols, *SUMMARY_COLUMNS])
    return empty_df.astype(
        {
            "n_stops": "int64",
            "n_searches": "int64",
            "n_hits": "int64",
            "search_rate": "Float64",
            "hit_rate": "Float64",
        }
    )


def summary_stats(
    stops_df: pd.DataFrame, group_cols: Sequence[str] = ()
) -> pd.DataFrame:
    """
    Compute stop, search and hit counts and rates per group.

    Rows missing any group column are excluded rather than bucketed. Groups
    appear in first-appearance order.

    Args:
        stops_df: DataFrame with search_conducted, optionally contraband_found,
            and the group columns
        group_cols: Columns to group by. Empty for a single overall row.

    Returns:
        DataFrame with the group columns followed by n_stops, n_searches,
        n_hits, search_rate and hit_rate. hit_rate is pd.NA for groups
        without searches.

    Raises:
        ValueError: If a required column is missing
    """
    group_cols = list(group_cols)
    missing_cols = [
        col for col in ["search_conducted", *group_cols] if col not in stops_df.columns
    ]
    if missing_cols:
        raise ValueError(f"Missing columns for summary: {missing_cols}")

    searched = _as_flag(stops_df["search_conducted"])
    if "contraband_found" in stops_df.columns:
        hit = searched & _as_flag(stops_df["contraband_found"])
    else:
        hit = pd.Series(False, index=stops_df.index)

    flags_df = pd.DataFrame(
        {"_searched": searched.astype("int64"), "_hit": hit.astype("int64")},
        index=stops_df.index,
    )
    if group_cols:
        flags_df = pd.concat([stops_df[group_cols], flags_df], axis=1)
        before = len(flags_df)
        flags_df = flags_df.dropna(subset=group_cols)
        if len(flags_df) < before:
            logger.debug(
                "Dropped %d rows missing one of %s", before - len(flags_df), group_cols
            )

    if flags_df.empty:
        return _empty_summary(group_cols)

    if group_cols:
        counts_df = (
            flags_df.groupby(group_cols, sort=False, observed=True)
            .agg(
                n_stops=("_searched", "size"),
                n_searches=("_searched", "sum"),
                n_hits=("_hit", "sum"),
            )
            .reset_index()
        )
    else:
        counts_df = pd.DataFrame(
            {
                "n_stops": [len(flags_df)],
                "n_searches": [int(flags_df["_searched"].sum())],
                "n_hits": [int(flags_df["_hit"].sum())],
            }
        )

    counts_df[["n_stops", "n_searches", "n_hits"]] = counts_df[
        ["n_stops", "n_searches", "n_hits"]
    ].astype("int64")
    counts_df["search_rate"] = _rate(counts_df["n_searches"], counts_df["n_stops"])
    counts_df["hit_rate"] = _rate(counts_df["n_hits"], counts_df["n_searches"])
    return counts_df


def summarize_groupings(
    stops_df: pd.DataFrame, groupings: Dict[str, List[str]]
) -> Dict[str, pd.DataFrame]:
    """
    Apply summary_stats once per named grouping.

    Args:
        stops_df: Filtered stops dataframe
        groupings: Mapping of grouping name to its group columns, e.g.
            {"by_race": ["driver_race"]}

    Returns:
        Mapping of grouping name to its summary dataframe
    """
    summaries = {}
    for name, group_cols in groupings.items():
        logger.info("Summarizing %s by %s...", name, group_cols)
        summaries[name] = summary_stats(stops_df, group_cols)
        logger.debug("%s: %d groups", name, len(summaries[name]))
    return summaries
