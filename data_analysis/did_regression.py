"""
Difference-in-Differences Estimation

Fits, over the weekly panel,

    mean_index = b0 + b1·high_earning + b2·post_period + b3·treated + e

by OLS with conventional standard errors. No fixed effects and no
clustering. b3 (treated) is the DID estimate: the extra post-release change
in search interest for high-earning schools.

The design is checked before fitting; a constant or collinear regressor
raises RankDeficientDesignError naming it instead of producing a fit with
meaningless coefficients.
"""

import os
import json
import logging

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf

from schemas.regression_result import CoefficientEstimate, RegressionResult
from utils.errors import RankDeficientDesignError

OUTCOME = 'mean_index'
REGRESSORS = ['high_earning', 'post_period', 'treated']
DID_FORMULA = f"{OUTCOME} ~ " + " + ".join(REGRESSORS)


def prepare_design(panel: pd.DataFrame):
    """
    Drop rows with a missing outcome or regressor and cast to float.

    Returns:
        (regression DataFrame, rows dropped)
    """
    data = panel.dropna(subset=[OUTCOME] + REGRESSORS)
    dropped = len(panel) - len(data)
    if dropped:
        logging.warning(f"Dropped {dropped} panel rows with a missing outcome or regressor before estimation.")
    data = data[[OUTCOME] + REGRESSORS].astype(float).reset_index(drop=True)
    return data, dropped


def check_design_rank(data: pd.DataFrame):
    """Raise RankDeficientDesignError if the intercept + regressors are not identified."""
    n_params = len(REGRESSORS) + 1
    if len(data) <= n_params:
        raise RankDeficientDesignError(
            f"Only {len(data)} usable panel rows for {n_params} parameters; the DID model is not identified.",
            regressors=REGRESSORS,
        )

    constant = [r for r in REGRESSORS if data[r].nunique() <= 1]
    if constant:
        values = {r: data[r].iloc[0] for r in constant}
        raise RankDeficientDesignError(
            f"Regressor(s) constant across the panel: {values}. "
            f"Check that the data spans both sides of the release date and both earnings groups.",
            regressors=constant,
        )

    X = np.column_stack([np.ones(len(data))] + [data[r].to_numpy() for r in REGRESSORS])
    full_rank = np.linalg.matrix_rank(X)
    if full_rank < X.shape[1]:
        # A regressor is part of the collinear set if removing it does not lower the rank
        collinear = []
        for i, r in enumerate(REGRESSORS, start=1):
            if np.linalg.matrix_rank(np.delete(X, i, axis=1)) == full_rank:
                collinear.append(r)
        raise RankDeficientDesignError(
            f"Design matrix has rank {full_rank} < {X.shape[1]}; collinear regressors: {collinear}",
            regressors=collinear,
        )


def estimate_did(panel: pd.DataFrame, significance_level: float = 0.05) -> RegressionResult:
    data, dropped = prepare_design(panel)
    check_design_rank(data)

    model = smf.ols(DID_FORMULA, data=data).fit()

    coefficients = {}
    for term in ['Intercept'] + REGRESSORS:
        name = 'intercept' if term == 'Intercept' else term
        p_value = float(model.pvalues[term])
        coefficients[name] = CoefficientEstimate(
            term=name,
            estimate=float(model.params[term]),
            std_error=float(model.bse[term]),
            t_value=float(model.tvalues[term]),
            p_value=p_value,
            significant=bool(p_value < significance_level),
        )

    result = RegressionResult(
        formula=DID_FORMULA,
        coefficients=coefficients,
        nobs=int(model.nobs),
        r_squared=float(model.rsquared),
        adj_r_squared=float(model.rsquared_adj),
        rows_dropped=dropped,
        significance_level=significance_level,
    )
    did = result.did_estimate
    stars = "***" if did.p_value < 0.01 else "**" if did.p_value < 0.05 else "*" if did.p_value < 0.10 else ""
    logging.info(f"DID estimate (treated): {did.estimate:.4f} {stars} (SE = {did.std_error:.4f}, p = {did.p_value:.4f}, N = {result.nobs})")
    return result


def save_regression_result(result: RegressionResult, output_dir="data_output"):
    """Write the coefficient table (CSV) and the full result (JSON)."""
    os.makedirs(output_dir, exist_ok=True)
    csv_path = os.path.join(output_dir, "did_coefficients.csv")
    result.to_frame().to_csv(csv_path, index=False)
    json_path = os.path.join(output_dir, "did_result.json")
    with open(json_path, "w") as f:
        json.dump(result.model_dump(), f, indent=2)
    logging.info(f"Saved regression outputs → {csv_path}, {json_path}")
    return csv_path, json_path
