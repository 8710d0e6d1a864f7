"""
Load the College Scorecard earnings export and the school-name to ID link file.

Both are read as text; IDs are normalized later by the merger and earnings are
coerced to numeric by the variable deriver, where the failures are counted.
"""

import logging
from typing import Optional

import pandas as pd

from data_ingestion.load_trends import normalize_headers, read_csv_with_fallback
from utils.errors import SchemaMismatchError

HEADER_MAP_SCORECARD = {
    'unitid': 'institution_id', 'institution_id': 'institution_id',
    'md_earn_wne_p10-reported-earnings': 'reported_earnings', 'reported_earnings': 'reported_earnings',
    'preddeg': 'predominant_degree', 'predominant_degree': 'predominant_degree',
}
HEADER_MAP_ID_LINK = {
    'unitid': 'institution_id', 'institution_id': 'institution_id',
    'schname': 'institution_name', 'institution_name': 'institution_name',
}
REQUIRED_SCORECARD_FIELDS = {'institution_id', 'reported_earnings'}
REQUIRED_ID_LINK_FIELDS = {'institution_name', 'institution_id'}


def _require(df, required, filepath, label):
    missing = required - set(df.columns)
    if missing:
        logging.error(f"Missing required {label} fields in {filepath}: {sorted(missing)}")
        raise SchemaMismatchError(
            f"{filepath} is missing required {label} columns: {sorted(missing)}",
            path=filepath,
            columns=missing,
        )


def load_scorecard_csv(filepath: str, predominant_degree: Optional[int] = None) -> pd.DataFrame:
    """
    Load the earnings export, keeping the ID, raw earnings and (when present)
    the predominant degree code.

    If `predominant_degree` is given and the file carries a PREDDEG column, only
    institutions with that code are kept.
    """
    df = normalize_headers(read_csv_with_fallback(filepath), HEADER_MAP_SCORECARD)
    _require(df, REQUIRED_SCORECARD_FIELDS, filepath, 'earnings')

    if predominant_degree is not None:
        if 'predominant_degree' in df.columns:
            before = len(df)
            codes = pd.to_numeric(df['predominant_degree'], errors='coerce')
            df = df[codes == predominant_degree]
            logging.info(f"Kept {len(df):,} of {before:,} institutions with PREDDEG == {predominant_degree}.")
        else:
            logging.warning(f"{filepath} has no PREDDEG column; predominant degree filter skipped.")

    keep = [c for c in ['institution_id', 'reported_earnings', 'predominant_degree'] if c in df.columns]
    return df[keep].reset_index(drop=True)


def load_id_link_csv(filepath: str) -> pd.DataFrame:
    """Load the name to institution ID link table (name, id only)."""
    df = normalize_headers(read_csv_with_fallback(filepath), HEADER_MAP_ID_LINK)
    _require(df, REQUIRED_ID_LINK_FIELDS, filepath, 'id link')
    return df[['institution_name', 'institution_id']].reset_index(drop=True)
