# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Traffic-stop outcome analysis pipeline.

This module runs the full analysis: load and filter stops, compute search and
hit rates by race (alone and crossed with gender, age group and county),
compare each race against the reference race within counties, and fit a
logistic regression of searches that controls for the other attributes.

Usage:
    python -m analysis.pipeline \\
        --config analysis/config_analysis.json
    python -m analysis.pipeline \\
        --input-file data/stops.csv \\
        --output-dir output/analysis \\
        --start-date 2013-01-01 --end-date 2014-12-31
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

import pandas as pd

from analysis.comparison import compare_to_reference
from analysis.config_utils import (
    age_bins_from_config,
    load_config_from_args,
    merge_with_defaults,
    setup_logging,
)
from analysis.data_loader import add_age_group, drop_missing, filter_stops, load_stops
from analysis.modeling import fit_search_model
from analysis.summary import summarize_groupings
from visualization.charts import create_disparity_scatter, create_rate_bar_chart

logger = logging.getLogger(__name__)

RACE_COL = "driver_race"
COUNTY_COL = "county_name"

GROUPINGS = {
    "by_race": [RACE_COL],
    "by_race_gender": [RACE_COL, "driver_gender"],
    "by_race_age": [RACE_COL, "age_group"],
}


def frame_to_records(df: pd.DataFrame) -> list[Dict[str, Any]]:
    """Convert a dataframe to JSON-ready records, with missing values as None."""
    return json.loads(df.to_json(orient="records", date_format="iso"))


def save_results(data: Dict[str, Any], output_file: Path) -> None:
    """
    Save analysis results to JSON file.

    Args:
        data: Results dictionary
        output_file: Path to output file
    """
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with output_file.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)

    logger.info("Analysis results saved to: %s", output_file)


def save_config_snapshot(config: Dict[str, Any], output_dir: Path) -> None:
    """
    Save a snapshot of the configuration used.

    Args:
        config: Configuration dictionary
        output_dir: Output directory
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    config_snapshot_path = output_dir / "config.json"
    with config_snapshot_path.open("w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)

    logger.info("Configuration snapshot saved to: %s", config_snapshot_path)


def save_charts(
    summaries: Dict[str, pd.DataFrame],
    comparisons: Dict[str, pd.DataFrame],
    output_dir: Path,
    reference_race: str,
) -> None:
    """
    Render the rate charts to standalone HTML files.

    Args:
        summaries: Summary tables by grouping name
        comparisons: Comparison tables by rate name
        output_dir: Output directory
        reference_race: Reference race, used in axis titles
    """
    charts_dir = output_dir / "charts"
    charts_dir.mkdir(parents=True, exist_ok=True)

    labels = {"search_rate": "Search rate", "hit_rate": "Hit rate"}
    for rate, label in labels.items():
        create_rate_bar_chart(
            summaries["by_race"], group_col=RACE_COL, rate=rate, rate_label=label
        ).save(str(charts_dir / f"{rate}_by_race.html"))
        create_disparity_scatter(
            comparisons[rate],
            group_col=RACE_COL,
            by=COUNTY_COL,
            rate_label=label,
            reference_label=f"{reference_race} drivers",
        ).save(str(charts_dir / f"{rate}_by_county.html"))

    logger.info("Charts saved to: %s", charts_dir)


def analyze_stops(stops_df: pd.DataFrame, config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Run every summary, comparison and the search model on filtered stops.

    Args:
        stops_df: Loaded stops
        config: Configuration merged with defaults

    Returns:
        Dictionary with metadata, summaries (dataframes), comparisons
        (dataframes) and model (ModelResult or None)
    """
    filters = config["filters"]
    processing = config["processing"]
    reference_race = processing["reference_race"]

    filtered_df = filter_stops(
        stops_df,
        start_date=filters.get("start_date"),
        end_date=filters.get("end_date"),
        races=filters.get("races"),
    )
    filtered_df = add_age_group(
        filtered_df, bins=age_bins_from_config(processing["age_bins"])
    )

    summaries = summarize_groupings(filtered_df, GROUPINGS)

    # County names are missing for some stops; those are left out of the
    # county breakdown only
    county_df = drop_missing(filtered_df, [COUNTY_COL])
    summaries.update(
        summarize_groupings(county_df, {"by_race_county": [RACE_COL, COUNTY_COL]})
    )

    comparisons = {
        rate: compare_to_reference(
            summaries["by_race_county"],
            group_col=RACE_COL,
            reference=reference_race,
            by=COUNTY_COL,
            rate=rate,
        )
        for rate in ("search_rate", "hit_rate")
    }

    model = None
    predictors = processing["model_predictors"]
    model_summary = summarize_groupings(filtered_df, {"model": predictors})["model"]
    if model_summary.empty:
        logger.warning("No complete rows for the search model; skipping it")
    else:
        model = fit_search_model(
            model_summary, predictors, reference_levels={RACE_COL: reference_race}
        )

    return {
        "metadata": {
            "total_stops": len(stops_df),
            "filtered_stops": len(filtered_df),
            "total_searches": int(summaries["by_race"]["n_searches"].sum()),
            "reference_race": reference_race,
            "start_date": filters.get("start_date"),
            "end_date": filters.get("end_date"),
            "races": filters.get("races"),
            "generated_at": pd.Timestamp.now(tz="UTC").isoformat(),
        },
        "summaries": summaries,
        "comparisons": comparisons,
        "model": model,
    }


def _build_output_structure(results: Dict[str, Any]) -> Dict[str, Any]:
    """Convert analysis results to a JSON-serializable dictionary."""
    model = results["model"]
    return {
        "metadata": results["metadata"],
        "summaries": {
            name: frame_to_records(df) for name, df in results["summaries"].items()
        },
        "comparisons": {
            name: frame_to_records(df) for name, df in results["comparisons"].items()
        },
        "model": (
            None
            if model is None
            else {
                **model.to_dict(),
                "coefficients": frame_to_records(model.coefficients),
            }
        ),
    }


def _log_pipeline_summary(results: Dict[str, Any], output_file: Path) -> None:
    """
    Log pipeline completion summary.

    Args:
        results: Analysis results with metadata
        output_file: Path to output file
    """
    metadata = results["metadata"]
    logger.info("=" * 60)
    logger.info("ANALYSIS COMPLETE")
    logger.info("=" * 60)
    logger.info("Summary:")
    logger.info("  - Total stops: %d", metadata["total_stops"])
    logger.info("  - Stops after filtering: %d", metadata["filtered_stops"])
    logger.info("  - Searches: %d", metadata["total_searches"])
    for row in results["summaries"]["by_race"].itertuples(index=False):
        hit_rate = "n/a" if pd.isna(row.hit_rate) else f"{row.hit_rate:.1%}"
        logger.info(
            "  - %s: %d stops, search rate %.1f%%, hit rate %s",
            getattr(row, RACE_COL),
            row.n_stops,
            100 * row.search_rate,
            hit_rate,
        )
    if results["model"] is not None:
        logger.info("  - Model: %s", results["model"].formula)
    logger.info("Results: %s", output_file)
    logger.info("=" * 60)


def run_analysis_pipeline(
    input_file: str,
    output_dir: str,
    config_dict: Dict[str, Any] | None = None,
    save_config_snapshot_flag: bool = True,
    save_charts_flag: bool = False,
) -> Dict[str, Any]:
    """
    Run the complete analysis pipeline.

    This function:
    1. Loads the stops CSV
    2. Filters, summarizes, compares and models the stops
    3. Saves the results
    4. Optionally saves a config snapshot and HTML charts

    Args:
        input_file: Path to stops CSV
        output_dir: Directory to save outputs
        config_dict: Configuration dictionary (merged with defaults)
        save_config_snapshot_flag: Whether to save a snapshot of the merged
            config (defaults included, also when config_dict is None)
        save_charts_flag: Whether to render charts

    Returns:
        The analysis results (dataframes, not serialized)
    """
    config = merge_with_defaults(config_dict or {})

    logger.info("=" * 60)
    logger.info("TRAFFIC STOP ANALYSIS PIPELINE")
    logger.info("=" * 60)
    logger.info("Input: %s", input_file)
    logger.info("Output: %s", output_dir)
    logger.info("=" * 60)

    stops_df = load_stops(input_file)
    results = analyze_stops(stops_df, config)

    output_path = Path(output_dir)
    output_file = output_path / "analysis_results.json"
    save_results(_build_output_structure(results), output_file)

    if save_config_snapshot_flag:
        save_config_snapshot(config, output_path)

    if save_charts_flag:
        save_charts(
            results["summaries"],
            results["comparisons"],
            output_path,
            config["processing"]["reference_race"],
        )

    _log_pipeline_summary(results, output_file)
    return results


def _parse_pipeline_args() -> argparse.Namespace:
    """Parse command-line arguments for the analysis pipeline."""
    parser = argparse.ArgumentParser(
        description="Analyze search and hit rates in traffic-stop records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Basic usage with config file
    python -m analysis.pipeline --config analysis/config_analysis.json

    # Custom paths and date range
    python -m analysis.pipeline \\
        --input-file data/stops.csv \\
        --output-dir output/analysis \\
        --start-date 2013-01-01 --end-date 2014-12-31

    # With charts and debug logging
    python -m analysis.pipeline --config analysis/config_analysis.json \\
        --save-charts --debug
        """,
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to JSON config file (optional if other args provided)",
    )
    parser.add_argument(
        "--input-file",
        type=str,
        help="Path to stops CSV file",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        help="Directory to save analysis results",
    )
    parser.add_argument("--start-date", type=str, help="First stop date to keep")
    parser.add_argument("--end-date", type=str, help="Last stop date to keep")
    parser.add_argument(
        "--save-charts", action="store_true", help="Render HTML charts"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def _apply_arg_overrides(
    args: argparse.Namespace, config_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Apply CLI arguments on top of the loaded configuration."""
    config = merge_with_defaults(config_dict)
    if args.input_file:
        config["input"]["stops_file"] = args.input_file
    if args.output_dir:
        config["output"]["output_dir"] = args.output_dir
    if args.start_date:
        config["filters"]["start_date"] = args.start_date
    if args.end_date:
        config["filters"]["end_date"] = args.end_date
    if args.save_charts:
        config["output"]["save_charts"] = True
    return config


def main() -> int:
    """Main function."""
    args = _parse_pipeline_args()

    setup_logging(
        debug=args.debug,
        module_names=["analysis.data_loader", "analysis.summary", "analysis.modeling"],
    )

    try:
        config_dict = load_config_from_args(args.config)
    except FileNotFoundError:
        return 1

    config = _apply_arg_overrides(args, config_dict)
    input_file = config["input"]["stops_file"]
    output_dir = config["output"]["output_dir"]

    if not input_file:
        logger.error("Error: --input-file or config.input.stops_file is required")
        return 1

    try:
        run_analysis_pipeline(
            input_file=input_file,
            output_dir=output_dir,
            config_dict=config,
            save_config_snapshot_flag=config["output"]["save_config_snapshot"],
            save_charts_flag=config["output"]["save_charts"],
        )
        return 0
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.error("Pipeline failed: %s", e, exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
