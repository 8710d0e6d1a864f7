"""
Resolve school names to a single institution ID.

Policy: names that map to more than one institution are dropped entirely.
Picking one of several IDs would silently attach the wrong earnings to a
school's search history.
"""

import logging

import pandas as pd


def resolve_identifiers(link_df: pd.DataFrame):
    """
    Keep only names that map to exactly one institution ID.

    Exact duplicate (name, id) rows count as one mapping.

    Returns:
        (resolved DataFrame, ambiguous names dropped, link rows dropped)
    """
    links = link_df[['institution_name', 'institution_id']].copy()
    links['institution_id'] = normalize_institution_id(links['institution_id'])
    links = links.dropna(subset=['institution_name', 'institution_id'])
    before = len(links)

    links = links.drop_duplicates()
    counts = links.groupby('institution_name')['institution_id'].transform('size')
    ambiguous = links.loc[counts > 1, 'institution_name']

    resolved = links.loc[counts == 1].reset_index(drop=True)
    names_dropped = int(ambiguous.nunique())
    rows_dropped = before - len(resolved)

    if names_dropped:
        logging.warning(
            f"Dropped {names_dropped} ambiguous school name(s) linked to multiple IDs "
            f"({rows_dropped} link rows removed)."
        )
    return resolved, names_dropped, rows_dropped


def normalize_institution_id(series: pd.Series) -> pd.Series:
    """
    Represent institution IDs as trimmed text so that 100654, "100654" and
    100654.0 all compare equal across files.
    """
    ids = series.astype('string').str.strip()
    ids = ids.str.replace(r'\.0+$', '', regex=True)
    return ids.replace('', pd.NA)
