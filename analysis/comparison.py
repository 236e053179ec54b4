# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Pairing of comparison groups against a reference group.

Used to build the disparity scatterplots: for each secondary key (e.g. county)
the reference group's rate (e.g. white drivers) is paired with each other
group's rate in the same county.
"""

import logging

import pandas as pd

logger = logging.getLogger(__name__)

COMPARISON_COLUMNS = ["reference_rate", "comparison_rate", "comparison_n_stops"]


def compare_to_reference(
    summary_df: pd.DataFrame,
    group_col: str,
    reference: str,
    by: str,
    rate: str = "search_rate",
) -> pd.DataFrame:
    """
    Inner-join each non-reference group to the reference group on a secondary key.

    Secondary key values present for only one side are dropped. Undefined
    rates stay pd.NA.

    Args:
        summary_df: Output of summary_stats grouped by [by, group_col] (any order)
        group_col: Column holding the compared categories (e.g. driver_race)
        reference: Reference category (e.g. "White")
        by: Secondary key column to join on (e.g. county_name)
        rate: Rate column to compare (search_rate or hit_rate)

    Returns:
        DataFrame with columns: by, group_col, reference_rate,
        comparison_rate, comparison_n_stops

    Raises:
        ValueError: If a required column is missing from summary_df, or if
            a (by, group_col) pair appears on more than one row
    """
    required = [group_col, by, rate, "n_stops"]
    missing_cols = [col for col in required if col not in summary_df.columns]
    if missing_cols:
        raise ValueError(f"Missing columns for comparison: {missing_cols}")

    duplicated = summary_df.duplicated([by, group_col])
    if duplicated.any():
        raise ValueError(
            f"Summary has {int(duplicated.sum())} duplicate ({by}, {group_col}) rows; "
            f"group it by exactly [{by}, {group_col}]"
        )

    is_reference = summary_df[group_col] == reference
    reference_df = summary_df.loc[is_reference, [by, rate]].rename(
        columns={rate: "reference_rate"}
    )
    comparison_df = summary_df.loc[
        ~is_reference, [by, group_col, rate, "n_stops"]
    ].rename(columns={rate: "comparison_rate", "n_stops": "comparison_n_stops"})

    if reference_df.empty:
        logger.warning("Reference group %r not found in %s", reference, group_col)

    paired_df = comparison_df.merge(reference_df, on=by, how="inner")
    logger.debug(
        "Paired %d of %d comparison rows against %r on %s",
        len(paired_df),
        len(comparison_df),
        reference,
        by,
    )

    paired_df = paired_df[[by, group_col, *COMPARISON_COLUMNS]].reset_index(drop=True)
    # Categorical group columns keep unused levels after the split
    if isinstance(paired_df[group_col].dtype, pd.CategoricalDtype):
        paired_df[group_col] = paired_df[group_col].cat.remove_unused_categories()
    return paired_df
