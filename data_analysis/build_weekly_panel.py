"""
Build Weekly DID Panel

Collapses derived search records to one row per
(school, date, high_earning, post_period, treated):
- mean_index: mean standardized index, ignoring missing values
- n_obs: number of non-missing values behind the mean

Groups with no standardized values at all are dropped, never filled with 0.
"""

import os
import logging

import pandas as pd

PANEL_KEYS = ['institution_name', 'date', 'high_earning', 'post_period', 'treated']


def build_weekly_panel(derived_df: pd.DataFrame):
    """
    Returns:
        (panel DataFrame sorted by PANEL_KEYS, number of empty groups dropped)
    """
    panel = derived_df.groupby(PANEL_KEYS, dropna=False, sort=True).agg(
        mean_index=('standardized_index', 'mean'),
        n_obs=('standardized_index', 'count'),
    ).reset_index()

    empty = panel['n_obs'] == 0
    empty_groups = int(empty.sum())
    if empty_groups:
        logging.warning(f"Dropped {empty_groups} panel group(s) with no standardized index values.")

    panel = panel.loc[~empty].reset_index(drop=True)
    for col in ['high_earning', 'post_period', 'treated']:
        panel[col] = panel[col].astype('Int64')
    panel['n_obs'] = panel['n_obs'].astype(int)

    logging.info(f"Weekly panel: {len(panel):,} rows, {panel['institution_name'].nunique()} schools.")
    return panel, empty_groups


# -------------------------------------------------------------
# SAVE FUNCTIONS
# -------------------------------------------------------------

def save_panel_as_parquet(df, output_dir="data_output", filename="weekly_panel.parquet"):
    """Save the panel in Parquet format for the visualization layer."""
    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, filename)
    df.to_parquet(output_path, index=False)
    logging.info(f"Saved Parquet file → {output_path}")
    return output_path


def save_panel_as_csv(df, output_dir="data_output", filename="weekly_panel.csv"):
    """Save the panel in CSV format for human inspection."""
    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, filename)
    df.to_csv(output_path, index=False)
    logging.info(f"Saved CSV file → {output_path}")
    return output_path
