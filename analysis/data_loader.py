# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Loading and filtering of traffic-stop records.

Stops are read from CSV files following the Stanford Open Policing Project
column conventions (stop_date, county_name, driver_gender, driver_age,
driver_race, search_conducted, contraband_found).
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["search_conducted", "contraband_found"]

DEFAULT_AGE_BINS = [15, 25, 35, 50, 65, float("inf")]

_FLAG_VALUES = {
    "true": True,
    "t": True,
    "yes": True,
    "y": True,
    "1": True,
    "1.0": True,
    "false": False,
    "f": False,
    "no": False,
    "n": False,
    "0": False,
    "0.0": False,
}


def _coerce_flag(series: pd.Series) -> pd.Series:
    """Convert a flag column to the nullable boolean dtype."""
    if pd.api.types.is_bool_dtype(series) or pd.api.types.is_numeric_dtype(series):
        return series.astype("boolean")
    normalized = series.astype("string").str.strip().str.lower()
    return normalized.map(_FLAG_VALUES).astype("boolean")


def load_stops(stops_file: str) -> pd.DataFrame:
    """
    Load traffic stops from a CSV file.

    Args:
        stops_file: Path to local CSV file

    Returns:
        DataFrame with search_conducted and contraband_found as nullable
        booleans. contraband_found is NA for stops without a search.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If required columns are missing
    """
    stops_path = Path(stops_file)
    if not stops_path.is_absolute():
        stops_path = Path(__file__).parent.parent / stops_path

    if not stops_path.exists():
        raise FileNotFoundError(f"Stops file not found: {stops_path}")

    stops_df = pd.read_csv(stops_path, low_memory=False)

    missing_cols = [col for col in REQUIRED_COLUMNS if col not in stops_df.columns]
    if missing_cols:
        raise ValueError(f"Stops file {stops_path} is missing columns: {missing_cols}")

    if "stop_date" in stops_df.columns:
        stops_df["stop_date"] = pd.to_datetime(stops_df["stop_date"], errors="coerce")

    stops_df["search_conducted"] = _coerce_flag(stops_df["search_conducted"])
    searched = stops_df["search_conducted"].fillna(False).astype(bool)
    stops_df["contraband_found"] = _coerce_flag(stops_df["contraband_found"]).where(
        searched
    )

    logger.info("Loaded %d stops from %s", len(stops_df), stops_path)
    return stops_df


def filter_stops(
    stops_df: pd.DataFrame,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    races: Optional[Sequence[str]] = None,
    date_col: str = "stop_date",
    race_col: str = "driver_race",
) -> pd.DataFrame:
    """
    Restrict stops to a date range and a set of races.

    Args:
        stops_df: Loaded stops
        start_date: First date to keep (inclusive), or None for no lower bound
        end_date: Last date to keep (inclusive), or None for no upper bound
        races: Races to keep, or None to keep all
        date_col: Date column name
        race_col: Race column name

    Returns:
        Filtered copy of the stops

    Raises:
        ValueError: If a filter is requested on a missing column
    """
    keep = pd.Series(True, index=stops_df.index)

    if start_date is not None or end_date is not None:
        if date_col not in stops_df.columns:
            raise ValueError(f"Cannot filter by date: column {date_col} not found")
        dates = stops_df[date_col]
        if start_date is not None:
            keep &= dates >= pd.Timestamp(start_date)
        if end_date is not None:
            # Whole end day, including stops with a time of day
            keep &= dates < pd.Timestamp(end_date).normalize() + pd.Timedelta(days=1)

    if races is not None:
        if race_col not in stops_df.columns:
            raise ValueError(f"Cannot filter by race: column {race_col} not found")
        keep &= stops_df[race_col].isin(list(races))

    filtered_df = stops_df.loc[keep].copy()
    logger.info(
        "Kept %d of %d stops (dates %s to %s, races %s)",
        len(filtered_df),
        len(stops_df),
        start_date or "start",
        end_date or "end",
        list(races) if races is not None else "all",
    )
    return filtered_df


def _age_labels(bins: Sequence[float]) -> List[str]:
    labels = []
    for lower, upper in zip(bins, bins[1:]):
        if upper == float("inf"):
            labels.append(f"{int(lower)}+")
        else:
            labels.append(f"{int(lower)}-{int(upper) - 1}")
    return labels


def add_age_group(
    stops_df: pd.DataFrame,
    bins: Sequence[float] = tuple(DEFAULT_AGE_BINS),
    labels: Optional[Sequence[str]] = None,
    age_col: str = "driver_age",
    group_col: str = "age_group",
) -> pd.DataFrame:
    """
    Bucket driver ages into ordered categories.

    Buckets are closed on the left, e.g. [15, 25) is labelled "15-24". Ages
    outside the bins, or unparseable ages, become missing.

    Args:
        stops_df: Stops with an age column
        bins: Bucket edges in increasing order
        labels: Bucket labels (one fewer than bins). Generated when None.
        age_col: Age column name
        group_col: Name of the new bucket column

    Returns:
        Copy of the stops with the bucket column added
    """
    if age_col not in stops_df.columns:
        raise ValueError(f"Cannot bucket ages: column {age_col} not found")

    bins = list(bins)
    labels = list(labels) if labels is not None else _age_labels(bins)

    bucketed_df = stops_df.copy()
    ages = pd.to_numeric(bucketed_df[age_col], errors="coerce")
    bucketed_df[group_col] = pd.cut(ages, bins=bins, labels=labels, right=False)
    return bucketed_df


def drop_missing(stops_df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """
    Drop stops missing any of the given columns.

    Args:
        stops_df: Stops dataframe
        columns: Columns that must be present

    Returns:
        Stops with complete values for the columns
    """
    kept_df = stops_df.dropna(subset=list(columns))
    dropped = len(stops_df) - len(kept_df)
    if dropped:
        logger.info("Dropped %d stops missing %s", dropped, list(columns))
    return kept_df
