"""
File: data_ingestion/load_trends.py
Purpose:
    Load raw Google Trends search-interest exports (trends_up_to_*.csv).
    - Normalizes column names to the canonical schema
    - Converts the search index to numeric
    - Concatenates every matching file into one table, refusing files whose
      columns disagree
"""


import os
import glob
import logging

import pandas as pd

from utils.errors import SchemaMismatchError

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s')

# Canonical header normalization for search-interest exports
HEADER_MAP_TRENDS = {
    'schname': 'institution_name', 'institution_name': 'institution_name',
    'keyword': 'keyword',
    'monthorweek': 'period_token', 'period_token': 'period_token',
    'index': 'raw_index', 'raw_index': 'raw_index',
}
REQUIRED_TRENDS_FIELDS = {'institution_name', 'keyword', 'period_token', 'raw_index'}


def normalize_headers(df: pd.DataFrame, header_map: dict) -> pd.DataFrame:
    """Strip BOM/control chars, trim and lowercase headers, then apply the canonical map."""
    df = df.copy()
    df.columns = df.columns.str.encode('utf-8').str.decode('utf-8-sig').str.replace(r'[\x00-\x1F\x7F]', '', regex=True)
    df.columns = df.columns.str.strip().str.lower()
    return df.rename(columns={k: v for k, v in header_map.items() if k in df.columns})


def read_csv_with_fallback(filepath: str, encodings=("utf-8", "latin1", "cp1252")) -> pd.DataFrame:
    """Read every column as text, trying each encoding in turn."""
    last_err = None
    for enc in encodings:
        try:
            df = pd.read_csv(filepath, dtype=str, encoding=enc, keep_default_na=False, na_values=[''])
            logging.info(f"Loaded {filepath} with encoding {enc}")
            return df
        except UnicodeDecodeError as e:
            logging.warning(f"Failed to load {filepath} with encoding {enc}: {e}")
            last_err = e
    logging.error(f"All encoding attempts failed for {filepath}")
    raise last_err


def load_trends_csv(filepath: str) -> pd.DataFrame:
    """
    Load one search-interest export. Columns are normalized but the index is
    left as text so that files can be schema-checked before any coercion.
    """
    df = normalize_headers(read_csv_with_fallback(filepath), HEADER_MAP_TRENDS)

    missing = REQUIRED_TRENDS_FIELDS - set(df.columns)
    if missing:
        logging.error(f"Missing required search fields in {filepath}: {sorted(missing)}")
        raise SchemaMismatchError(
            f"{filepath} is missing required columns: {sorted(missing)}",
            path=filepath,
            columns=missing,
        )
    return df


def combine_trends_files(pattern: str):
    """
    Load and concatenate every file matching `pattern`.

    Files are read in sorted path order. All files must carry the same set of
    columns as the first one; otherwise SchemaMismatchError names the file and
    the differing columns.

    Returns:
        (combined DataFrame, list of file paths read, count of non-numeric raw_index cells)
    """
    paths = sorted(glob.glob(pattern))
    if not paths:
        raise FileNotFoundError(f"No search-interest files match {pattern}")

    frames = []
    reference_cols = None
    reference_path = None
    for path in paths:
        df = load_trends_csv(path)
        cols = set(df.columns)
        if reference_cols is None:
            reference_cols, reference_path = cols, path
        elif cols != reference_cols:
            diff = cols.symmetric_difference(reference_cols)
            logging.error(f"{path}: columns differ from {reference_path}: {sorted(diff)}")
            raise SchemaMismatchError(
                f"{path} has columns incompatible with {reference_path}: {sorted(diff)}",
                path=path,
                columns=diff,
            )
        df['source_file'] = os.path.basename(path)
        frames.append(df)

    combined = pd.concat(frames, ignore_index=True, sort=False)

    # Whitespace trim for keyword only; school names must stay exactly as given for the link join
    combined['keyword'] = combined['keyword'].str.strip()

    raw = combined['raw_index']
    combined['raw_index'] = pd.to_numeric(raw, errors='coerce')
    non_numeric = int((raw.notna() & combined['raw_index'].isna()).sum())
    if non_numeric:
        logging.warning(f"{non_numeric} raw_index values were not numeric and are treated as missing.")

    logging.info(f"Combined {len(paths)} search file(s) into {len(combined):,} rows.")
    return combined, paths, non_numeric
