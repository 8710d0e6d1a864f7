"""
Normalize the encoded period field of search-interest records.

Trends exports encode each period as a token such as
"2015-09-13 - 2015-09-19"; the first 10 characters are the period start.
"""

import logging
from datetime import datetime

import pandas as pd

from utils.errors import DateParseError

DATE_TOKEN_LENGTH = 10
DATE_FORMAT = "%Y-%m-%d"


def parse_period_token(token):
    """Return the calendar date at the start of `token`, or raise DateParseError."""
    if not isinstance(token, str) or len(token.strip()) < DATE_TOKEN_LENGTH:
        raise DateParseError(token)
    try:
        return datetime.strptime(token.strip()[:DATE_TOKEN_LENGTH], DATE_FORMAT).date()
    except ValueError:
        raise DateParseError(token)


def _parse_or_none(token):
    try:
        return parse_period_token(token)
    except DateParseError:
        return None


def normalize_period_dates(df: pd.DataFrame):
    """
    Add a `date` column parsed from `period_token`.

    Rows whose token cannot be parsed are excluded rather than aborting the run.

    Returns:
        (DataFrame with datetime64 `date`, number of excluded rows)
    """
    out = df.copy()
    parsed = out['period_token'].map(_parse_or_none)
    valid = parsed.notna()
    excluded = int((~valid).sum())
    if excluded:
        sample = out.loc[~valid, 'period_token'].head(3).tolist()
        logging.warning(f"Excluded {excluded} rows with malformed period tokens (e.g. {sample}).")

    out = out.loc[valid].copy()
    out['date'] = pd.to_datetime(parsed[valid])
    return out.reset_index(drop=True), excluded
