# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Chart creation functions for traffic-stop outcome summaries."""

import logging
from typing import List

import altair as alt
import pandas as pd

logger = logging.getLogger(__name__)

GROUP_COLORS = {
    "Black": "#1f77b4",
    "Hispanic": "#ff7f0e",
    "Asian": "#2ca02c",
    "Other": "#9467bd",
    "White": "#7f7f7f",
}


def _get_group_color_scale(groups: List[str]) -> tuple[List[str], List[str]]:
    """Return color scale domain and range, with fixed colors for known groups."""
    fallback_colors = ["#d62728", "#8c564b", "#e377c2", "#bcbd22", "#17becf"]
    color_range = []
    fallback_index = 0
    for group in groups:
        if group in GROUP_COLORS:
            color_range.append(GROUP_COLORS[group])
        else:
            color_range.append(fallback_colors[fallback_index % len(fallback_colors)])
            fallback_index += 1
    return list(groups), color_range


def _drop_undefined(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
    """Drop rows whose rate is undefined; they have no position on a rate axis."""
    defined_df = df.dropna(subset=columns)
    dropped = len(df) - len(defined_df)
    if dropped:
        logger.info("Omitting %d rows with undefined %s", dropped, ", ".join(columns))
    # Nullable Float64 columns are converted for vega-lite serialization
    defined_df = defined_df.copy()
    for col in columns:
        defined_df[col] = defined_df[col].astype(float)
    return defined_df


def create_disparity_scatter(
    comparison_df: pd.DataFrame,
    group_col: str = "driver_race",
    by: str = "county_name",
    rate_label: str = "Search rate",
    reference_label: str = "White drivers",
) -> alt.LayerChart:
    """Create a scatterplot of comparison-group rates against reference rates.

    Each point is one (secondary key, comparison group) pair. Points above the
    diagonal have a higher rate than the reference group in the same location.
    Points are sized by the comparison group's stop count.

    Args:
        comparison_df: Output of compare_to_reference with columns:
                       by, group_col, reference_rate, comparison_rate,
                       comparison_n_stops
        group_col: Column holding the comparison groups
        by: Secondary key column (shown in tooltips)
        rate_label: Name of the compared rate for axis titles
        reference_label: Description of the reference group for axis titles

    Returns:
        Altair LayerChart with the points and a y = x reference line
    """
    df = _drop_undefined(comparison_df, ["reference_rate", "comparison_rate"])
    df[group_col] = df[group_col].astype(str)
    df[by] = df[by].astype(str)

    upper = 0.0
    if not df.empty:
        upper = float(max(df["reference_rate"].max(), df["comparison_rate"].max()))
    upper = max(upper * 1.05, 0.01)

    groups = sorted(df[group_col].unique().tolist())
    color_domain, color_range = _get_group_color_scale(groups)

    points = (
        alt.Chart(df)
        .mark_circle(opacity=0.7)
        .encode(
            x=alt.X(
                "reference_rate:Q",
                title=f"{rate_label} ({reference_label})",
                scale=alt.Scale(domain=[0, upper]),
                axis=alt.Axis(format="%"),
            ),
            y=alt.Y(
                "comparison_rate:Q",
                title=f"{rate_label} (comparison group)",
                scale=alt.Scale(domain=[0, upper]),
                axis=alt.Axis(format="%"),
            ),
            size=alt.Size("comparison_n_stops:Q", title="Stops"),
            color=alt.Color(
                f"{group_col}:N",
                title="Group",
                scale=alt.Scale(domain=color_domain, range=color_range),
            ),
            tooltip=[
                alt.Tooltip(f"{by}:N", title="Location"),
                alt.Tooltip(f"{group_col}:N", title="Group"),
                alt.Tooltip("reference_rate:Q", title="Reference rate", format=".1%"),
                alt.Tooltip(
                    "comparison_rate:Q", title="Comparison rate", format=".1%"
                ),
                alt.Tooltip("comparison_n_stops:Q", title="Stops"),
            ],
        )
    )

    diagonal = (
        alt.Chart(pd.DataFrame({"x": [0.0, upper], "y": [0.0, upper]}))
        .mark_line(color="black", strokeDash=[4, 4])
        .encode(x="x:Q", y="y:Q")
    )

    return alt.layer(points, diagonal).properties(height=400, width=400)


def create_rate_bar_chart(
    summary_df: pd.DataFrame,
    group_col: str = "driver_race",
    rate: str = "search_rate",
    rate_label: str = "Search rate",
) -> alt.Chart:
    """Create a bar chart of one rate per group.

    Groups whose rate is undefined are omitted rather than drawn at zero.

    Args:
        summary_df: Output of summary_stats grouped by group_col
        group_col: Column holding the groups
        rate: Rate column to plot
        rate_label: Axis title for the rate

    Returns:
        Altair Chart object
    """
    df = _drop_undefined(summary_df[[group_col, rate, "n_stops"]], [rate])
    df[group_col] = df[group_col].astype(str)
    groups = sorted(df[group_col].unique().tolist())
    color_domain, color_range = _get_group_color_scale(groups)

    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X(f"{group_col}:N", title="", sort=groups),
            y=alt.Y(f"{rate}:Q", title=rate_label, axis=alt.Axis(format="%")),
            color=alt.Color(
                f"{group_col}:N",
                scale=alt.Scale(domain=color_domain, range=color_range),
                legend=None,
            ),
            tooltip=[
                alt.Tooltip(f"{group_col}:N", title="Group"),
                alt.Tooltip(f"{rate}:Q", title=rate_label, format=".1%"),
                alt.Tooltip("n_stops:Q", title="Stops"),
            ],
        )
        .properties(height=300)
    )
