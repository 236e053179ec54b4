# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Shared pytest fixtures for visualization tests."""

import pandas as pd
import pytest

from visualization.tests.fixtures.sample_data import (
    HIT_RATE_PAIRS,
    SEARCH_RATE_PAIRS,
    SUMMARY_BY_RACE,
)

PAIR_COLUMNS = [
    "county_name",
    "driver_race",
    "reference_rate",
    "comparison_rate",
    "comparison_n_stops",
]


def _pairs_df(rows) -> pd.DataFrame:
    pairs_df = pd.DataFrame(rows, columns=PAIR_COLUMNS)
    for col in ("reference_rate", "comparison_rate"):
        pairs_df[col] = pairs_df[col].astype("Float64")
    return pairs_df


@pytest.fixture
def sample_summary_df():
    """Return a by-race summary where one group was never searched."""
    summary_df = pd.DataFrame(
        SUMMARY_BY_RACE,
        columns=[
            "driver_race",
            "n_stops",
            "n_searches",
            "n_hits",
            "search_rate",
            "hit_rate",
        ],
    )
    for col in ("search_rate", "hit_rate"):
        summary_df[col] = summary_df[col].astype("Float64")
    return summary_df


@pytest.fixture
def sample_search_pairs_df():
    """Return search-rate pairs with every rate defined."""
    return _pairs_df(SEARCH_RATE_PAIRS)


@pytest.fixture
def sample_hit_pairs_df():
    """Return hit-rate pairs where two rows have an undefined rate."""
    return _pairs_df(HIT_RATE_PAIRS)
