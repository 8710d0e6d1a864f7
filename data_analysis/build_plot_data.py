"""
Group trend series for the visualization layer: the average panel index of
high- and low-earning schools at each date. Rendering happens elsewhere.
"""

import pandas as pd


def build_group_trends(panel: pd.DataFrame) -> pd.DataFrame:
    """
    Mean of `mean_index` by (date, high_earning), with an `earnings_group`
    label. Rows with a missing split are excluded.
    """
    known = panel.dropna(subset=['high_earning', 'mean_index'])
    trends = known.groupby(['date', 'high_earning']).agg(
        mean_index=('mean_index', 'mean'),
        n_schools=('institution_name', 'nunique'),
    ).reset_index()
    trends['earnings_group'] = trends['high_earning'].map({1: 'high', 0: 'low'})
    return trends[['date', 'earnings_group', 'high_earning', 'mean_index', 'n_schools']]
