# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Shared pytest fixtures for analysis tests."""

# pylint: disable=redefined-outer-name

import numpy as np
import pandas as pd
import pytest

STOP_COLUMNS = [
    "stop_date",
    "county_name",
    "driver_gender",
    "driver_age",
    "driver_race",
    "search_conducted",
    "contraband_found",
]

# (race, gender, county, age, searched, contraband)
SAMPLE_STOPS = [
    ("White", "M", "Hartford County", 30, True, True),
    ("White", "F", "Hartford County", 45, True, False),
    ("White", "M", "New Haven County", 22, False, None),
    ("Black", "M", "Hartford County", 19, True, True),
    ("Black", "F", "Hartford County", 33, False, None),
    ("Hispanic", "M", None, 52, True, False),
    ("Hispanic", "F", "New Haven County", 27, False, None),
    ("Black", "M", "New Haven County", 61, False, None),
]


@pytest.fixture
def stops_df():
    """Return a small stops dataframe with known per-group counts."""
    races, genders, counties, ages, searched, contraband = zip(*SAMPLE_STOPS)
    return pd.DataFrame(
        {
            "stop_date": pd.to_datetime(["2014-01-15"] * len(SAMPLE_STOPS)),
            "county_name": list(counties),
            "driver_gender": list(genders),
            "driver_age": list(ages),
            "driver_race": list(races),
            "search_conducted": pd.array(searched, dtype="boolean"),
            "contraband_found": pd.array(contraband, dtype="boolean"),
        }
    )


def generate_stops(n_stops: int = 3000, seed: int = 7) -> pd.DataFrame:
    """
    Generate synthetic stops where Black and Hispanic drivers are searched
    more often than white drivers.
    """
    rng = np.random.default_rng(seed)
    races = rng.choice(["White", "Black", "Hispanic"], size=n_stops, p=[0.6, 0.2, 0.2])
    search_prob = pd.Series(races).map({"White": 0.04, "Black": 0.09, "Hispanic": 0.08})
    searched = rng.random(n_stops) < search_prob.to_numpy()
    found = rng.random(n_stops) < 0.3
    counties = rng.choice(
        ["Hartford County", "New Haven County", "Fairfield County", None],
        size=n_stops,
        p=[0.35, 0.3, 0.3, 0.05],
    )
    return pd.DataFrame(
        {
            "stop_date": pd.Timestamp("2013-06-01")
            + pd.to_timedelta(rng.integers(0, 900, size=n_stops), unit="D"),
            "county_name": counties,
            "driver_gender": rng.choice(["M", "F"], size=n_stops),
            "driver_age": rng.integers(16, 80, size=n_stops),
            "driver_race": races,
            "search_conducted": searched,
            "contraband_found": np.where(searched, found, None),
        },
        columns=STOP_COLUMNS,
    )


@pytest.fixture
def stops_csv(tmp_path):
    """Write synthetic stops to a CSV file and return its path."""
    csv_path = tmp_path / "stops.csv"
    stops = generate_stops()
    stops["stop_date"] = stops["stop_date"].dt.strftime("%Y-%m-%d")
    stops["search_conducted"] = stops["search_conducted"].map(
        {True: "TRUE", False: "FALSE"}
    )
    stops.to_csv(csv_path, index=False)
    return csv_path
