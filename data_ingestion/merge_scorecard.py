"""
Merge search-interest records with College Scorecard earnings.

Responsibilities:
- Search records ↔ resolved ID link, on exact school name
- Result ↔ earnings export, on institution ID (both sides as text)
- Inner join only: schools without a unique link or without an earnings row
  are excluded, and the excluded row counts are reported
"""

import logging

import pandas as pd

from data_ingestion.resolve_identifiers import normalize_institution_id


def drop_duplicate_earnings_ids(earnings_df: pd.DataFrame):
    """
    Remove institution IDs that appear more than once in the earnings export.

    Returns:
        (deduplicated DataFrame, number of IDs dropped)
    """
    earnings = earnings_df.copy()
    earnings['institution_id'] = normalize_institution_id(earnings['institution_id'])
    earnings = earnings.dropna(subset=['institution_id'])
    dup_mask = earnings['institution_id'].duplicated(keep=False)
    dropped = int(earnings.loc[dup_mask, 'institution_id'].nunique())
    if dropped:
        logging.warning(f"Dropped {dropped} institution ID(s) repeated in the earnings export.")
    return earnings.loc[~dup_mask].reset_index(drop=True), dropped


def merge_trends_scorecard(search_df: pd.DataFrame, resolved_links: pd.DataFrame, earnings_df: pd.DataFrame):
    """
    Two sequential inner joins: name → ID, then ID → earnings.

    Args:
        search_df: Standardized search records
        resolved_links: Output of resolve_identifiers (unique names)
        earnings_df: Earnings export with institution_id and reported_earnings

    Returns:
        (merged DataFrame, counts dict with unmatched_name_rows,
         unmatched_earnings_rows and duplicate_earnings_ids_dropped)
    """
    links = resolved_links[['institution_name', 'institution_id']].copy()
    links['institution_id'] = normalize_institution_id(links['institution_id'])

    linked = pd.merge(search_df, links, how='inner', on='institution_name', validate='many_to_one')
    unmatched_name_rows = len(search_df) - len(linked)
    if unmatched_name_rows:
        logging.warning(f"{unmatched_name_rows:,} search rows had no uniquely linked institution ID.")

    earnings, dup_ids = drop_duplicate_earnings_ids(earnings_df)
    merged = pd.merge(linked, earnings, how='inner', on='institution_id', validate='many_to_one')
    unmatched_earnings_rows = len(linked) - len(merged)
    if unmatched_earnings_rows:
        logging.warning(f"{unmatched_earnings_rows:,} linked search rows had no earnings record.")

    logging.info(f"Merged panel: {len(merged):,} rows across {merged['institution_name'].nunique()} schools.")
    counts = {
        'unmatched_name_rows': unmatched_name_rows,
        'unmatched_earnings_rows': unmatched_earnings_rows,
        'duplicate_earnings_ids_dropped': dup_ids,
    }
    return merged.reset_index(drop=True), counts
