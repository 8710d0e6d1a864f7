"""
Derive DID Variables

Adds to the merged panel:
- earnings: numeric median earnings ten years after entry (placeholders → missing)
- high_earning: 1 if earnings > median, 0 otherwise, missing if earnings missing
- post_period: 1 if the record's date is on/after the release date
- treated: high_earning × post_period, missing if either side is missing

Indicator columns use the nullable Int64 dtype so that "missing" stays
distinct from 0 through every later stage.
"""

import logging
from datetime import date

import numpy as np
import pandas as pd


def coerce_earnings(raw: pd.Series):
    """
    Convert reported earnings to float. Non-numeric placeholders such as
    "PrivacySuppressed" become NaN.

    Returns:
        (float Series, number of present-but-non-numeric values)
    """
    text = raw.astype('string').str.strip().str.replace(',', '', regex=False)
    earnings = pd.to_numeric(text, errors='coerce').astype(float)
    failures = int((text.notna() & (text != '') & earnings.isna()).sum())
    if failures:
        logging.warning(f"{failures} earnings values were not numeric and are treated as missing.")
    return earnings, failures


def compute_median_earnings(earnings: pd.Series) -> float:
    """Median over all non-missing earnings; NaN if there are none."""
    valid = earnings.dropna()
    if valid.empty:
        logging.warning("No numeric earnings available; high_earning will be missing for every row.")
        return np.nan
    return float(valid.median())


def derive_variables(df: pd.DataFrame, median_earnings: float, release_date: date) -> pd.DataFrame:
    """
    Add high_earning, post_period and treated given a precomputed median and
    release date. Expects a numeric `earnings` column and a datetime `date`.
    """
    out = df.copy()
    earnings = out['earnings']

    high = pd.Series((earnings > median_earnings).astype(int), index=out.index).astype('Int64')
    high = high.mask(earnings.isna() | pd.isna(median_earnings))

    dates = pd.to_datetime(out['date'])
    post = pd.Series((dates >= pd.Timestamp(release_date)).astype(int), index=out.index).astype('Int64')
    post = post.mask(dates.isna())

    out['high_earning'] = high
    out['post_period'] = post
    # Int64 arithmetic: NA in either operand gives NA
    out['treated'] = high * post
    return out


def add_did_variables(df: pd.DataFrame, release_date: date):
    """
    Coerce earnings, compute the global median once, and derive the DID
    indicators.

    Returns:
        (derived DataFrame, median earnings, earnings coercion failures)
    """
    out = df.copy()
    out['earnings'], failures = coerce_earnings(out['reported_earnings'])
    median_earnings = compute_median_earnings(out['earnings'])
    logging.info(f"Median earnings threshold: {median_earnings}")

    derived = derive_variables(out, median_earnings, release_date)
    counts = derived['high_earning'].value_counts(dropna=False).to_dict()
    logging.info(f"high_earning distribution (rows): {counts}")
    return derived, median_earnings, failures
