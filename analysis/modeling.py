# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Logistic regression of search outcomes on aggregated stop counts.

The model treats each summary row as ``n_stops`` binomial trials with
``n_searches`` successes and enters every predictor as a categorical, so the
race coefficients are adjusted for the other predictors (gender, age group,
county).
"""

from dataclasses import dataclass
import logging
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf

logger = logging.getLogger(__name__)

COEFFICIENT_COLUMNS = [
    "term",
    "coefficient",
    "std_error",
    "p_value",
    "odds_ratio",
    "ci_lower",
    "ci_upper",
]


@dataclass
class ModelResult:
    """Fitted search model summary"""

    formula: str
    coefficients: pd.DataFrame
    n_groups: int
    n_stops: int
    deviance: float

    def odds_ratio(self, predictor: str, level: str) -> float:
        """
        Return the odds ratio of one predictor level against its reference.

        Raises:
            KeyError: If the level has no coefficient (e.g. it is the reference)
        """
        terms = self.coefficients["term"]
        is_predictor = terms.str.startswith(f"C({predictor},") | terms.str.startswith(
            f"C({predictor})"
        )
        matches = self.coefficients.loc[is_predictor & terms.str.endswith(f"[T.{level}]")]
        if matches.empty:
            raise KeyError(f"No coefficient for {predictor}={level}")
        return float(matches["odds_ratio"].iloc[0])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "formula": self.formula,
            "n_groups": self.n_groups,
            "n_stops": self.n_stops,
            "deviance": self.deviance,
            "coefficients": self.coefficients.to_dict(orient="records"),
        }


def _categorical_term(column: str, reference: Optional[str]) -> str:
    if reference is None:
        return f"C({column})"
    return f"C({column}, Treatment(reference={reference!r}))"


def build_formula(
    predictors: Sequence[str], reference_levels: Optional[Dict[str, str]] = None
) -> str:
    """
    Build the binomial GLM formula for the search model.

    Args:
        predictors: Categorical predictor columns
        reference_levels: Optional treatment reference level per predictor

    Returns:
        Formula with (searched, not searched) counts as the response
    """
    reference_levels = reference_levels or {}
    terms = [_categorical_term(col, reference_levels.get(col)) for col in predictors]
    rhs = " + ".join(terms) if terms else "1"
    return f"n_searches + n_not_searched ~ {rhs}"


def fit_search_model(
    summary_df: pd.DataFrame,
    predictors: Sequence[str],
    reference_levels: Optional[Dict[str, str]] = None,
) -> ModelResult:
    """
    Fit a logistic regression of searches on categorical predictors.

    Args:
        summary_df: Output of summary_stats grouped by the predictors
        predictors: Categorical predictor columns (e.g. driver_race,
            driver_gender, age_group, county_name)
        reference_levels: Optional treatment reference level per predictor,
            e.g. {"driver_race": "White"}

    Returns:
        ModelResult with a tidy coefficient table

    Raises:
        ValueError: If the summary is empty or a predictor column is missing
    """
    missing_cols = [
        col
        for col in [*predictors, "n_stops", "n_searches"]
        if col not in summary_df.columns
    ]
    if missing_cols:
        raise ValueError(f"Missing columns for model: {missing_cols}")

    model_df = summary_df[[*predictors, "n_stops", "n_searches"]].dropna().copy()
    if model_df.empty:
        raise ValueError("Cannot fit search model on an empty summary")

    for col in predictors:
        # Categorical dtypes keep unobserved levels, which patsy would encode
        model_df[col] = model_df[col].astype(str)
    model_df["n_searches"] = model_df["n_searches"].astype("int64")
    model_df["n_not_searched"] = (model_df["n_stops"] - model_df["n_searches"]).astype(
        "int64"
    )

    formula = build_formula(predictors, reference_levels)
    logger.info("Fitting search model: %s (%d groups)", formula, len(model_df))

    result = smf.glm(formula, data=model_df, family=sm.families.Binomial()).fit()

    conf_int = result.conf_int()
    coefficients = pd.DataFrame(
        {
            "term": result.params.index,
            "coefficient": result.params.values,
            "std_error": result.bse.values,
            "p_value": result.pvalues.values,
            "odds_ratio": np.exp(result.params.values),
            "ci_lower": np.exp(conf_int[0].values),
            "ci_upper": np.exp(conf_int[1].values),
        },
        columns=COEFFICIENT_COLUMNS,
    )

    return ModelResult(
        formula=formula,
        coefficients=coefficients,
        n_groups=len(model_df),
        n_stops=int(model_df["n_stops"].sum()),
        deviance=float(result.deviance),
    )
