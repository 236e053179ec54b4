# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Tests for summary module."""

import pandas as pd
import pytest

from analysis.rates import (
    SUMMARY_COLUMNS,
    aggregate,
    attribute,
    observations_from_frame,
    to_frame,
)
from analysis.summary import summarize_groupings, summary_stats


def test_summary_by_race(stops_df):
    """Test per-race counts and rates."""
    summary_df = summary_stats(stops_df, ["driver_race"])

    assert summary_df["driver_race"].tolist() == ["White", "Black", "Hispanic"]
    assert summary_df["n_stops"].tolist() == [3, 3, 2]
    assert summary_df["n_searches"].tolist() == [2, 1, 1]
    assert summary_df["n_hits"].tolist() == [1, 1, 0]
    assert summary_df["search_rate"].tolist() == pytest.approx([2 / 3, 1 / 3, 0.5])
    assert summary_df["hit_rate"].tolist() == pytest.approx([0.5, 1.0, 0.0])


def test_summary_drops_missing_group_values(stops_df):
    """Test that the stop with no county is excluded from the county breakdown."""
    summary_df = summary_stats(stops_df, ["driver_race", "county_name"])

    assert len(summary_df) == 5
    assert summary_df["n_stops"].sum() == len(stops_df) - 1
    assert not summary_df["county_name"].isna().any()


def test_summary_marks_undefined_hit_rate(stops_df):
    """Test that groups without searches get pd.NA hit rates and zero search rates."""
    summary_df = summary_stats(stops_df, ["driver_race", "county_name"])
    unsearched = summary_df.loc[summary_df["n_searches"] == 0]

    assert len(unsearched) == 3
    assert unsearched["hit_rate"].isna().all()
    assert (unsearched["search_rate"] == 0).all()
    assert str(summary_df["hit_rate"].dtype) == "Float64"


def test_summary_matches_aggregate(stops_df):
    """Test that the vectorised summary equals the reference aggregator."""
    group_cols = ["driver_race", "county_name"]
    observations = observations_from_frame(stops_df, group_cols)
    expected = to_frame(
        aggregate(observations, [attribute(col) for col in group_cols]), group_cols
    )

    result = summary_stats(stops_df, group_cols)

    pd.testing.assert_frame_equal(result, expected, check_dtype=False)


def test_summary_without_groups(stops_df):
    """Test the single overall row when no group columns are given."""
    summary_df = summary_stats(stops_df)

    assert list(summary_df.columns) == SUMMARY_COLUMNS
    assert summary_df.loc[0, "n_stops"] == 8
    assert summary_df.loc[0, "n_searches"] == 4
    assert summary_df.loc[0, "n_hits"] == 2


def test_summary_of_empty_input(stops_df):
    """Test that an empty frame produces an empty summary, not an error."""
    summary_df = summary_stats(stops_df.iloc[0:0], ["driver_race"])

    assert summary_df.empty
    assert list(summary_df.columns) == ["driver_race", *SUMMARY_COLUMNS]
    assert summary_stats(stops_df.iloc[0:0]).empty


def test_summary_ignores_contraband_without_search():
    """Test that a contraband flag on an unsearched stop is not a hit."""
    stops = pd.DataFrame(
        {
            "driver_race": ["White", "White"],
            "search_conducted": [False, True],
            "contraband_found": [True, None],
        }
    )

    summary_df = summary_stats(stops, ["driver_race"])

    assert summary_df.loc[0, "n_searches"] == 1
    assert summary_df.loc[0, "n_hits"] == 0
    assert summary_df.loc[0, "hit_rate"] == 0.0


def test_summary_with_categorical_groups(stops_df):
    """Test that unobserved categorical levels do not produce empty groups."""
    stops = stops_df.assign(
        driver_race=pd.Categorical(
            stops_df["driver_race"], categories=["White", "Black", "Hispanic", "Asian"]
        )
    )

    summary_df = summary_stats(stops, ["driver_race"])

    assert len(summary_df) == 3
    assert (summary_df["n_stops"] > 0).all()


def test_summary_missing_column_raises(stops_df):
    """Test that an unknown group column is rejected."""
    with pytest.raises(ValueError, match="officer_id"):
        summary_stats(stops_df, ["officer_id"])


def test_summarize_groupings(stops_df):
    """Test repeated application across named groupings."""
    summaries = summarize_groupings(
        stops_df,
        {"by_race": ["driver_race"], "by_gender": ["driver_gender"]},
    )

    assert set(summaries) == {"by_race", "by_gender"}
    assert summaries["by_gender"]["n_stops"].sum() == len(stops_df)
