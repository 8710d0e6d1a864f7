"""
Standardize the search index within each keyword.

Trends indices are only comparable within a keyword (each keyword is scaled
to its own 0-100 range), so each one is turned into a z-score against its own
mean and sample standard deviation.
"""

import logging

import numpy as np
import pandas as pd

MIN_GROUP_OBSERVATIONS = 2


def standardize_by_keyword(df: pd.DataFrame, value_col='raw_index', group_col='keyword', out_col='standardized_index'):
    """
    Returns:
        (DataFrame with `out_col` added, number of rows whose standardized value is missing)

    Groups with fewer than 2 non-missing values or zero variance get a
    missing standardized value for every row.
    """
    out = df.copy()
    values = pd.to_numeric(out[value_col], errors='coerce')
    group = values.groupby(out[group_col], dropna=False)

    mean = group.transform('mean')
    std = group.transform('std')
    count = group.transform('count')

    std = std.where(count >= MIN_GROUP_OBSERVATIONS).replace({0: np.nan})
    out[out_col] = (values - mean) / std

    degenerate = out.loc[std.isna(), group_col].unique()
    if len(degenerate):
        logging.warning(f"{len(degenerate)} keyword group(s) could not be standardized (n<2 or zero variance).")

    missing = int(out[out_col].isna().sum())
    return out, missing
