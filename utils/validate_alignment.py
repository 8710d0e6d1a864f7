"""
Coverage Validator for Search Records + College Scorecard

Compares the search panel before and after linkage and computes:
- School counts on each side
- Matched share of schools and of rows
- Date range of matched rows
- Diagnostic summary

Use this after merging to judge how much of the search panel the inner joins
excluded before reading anything into the DID estimate.
"""

import pandas as pd


def validate_alignment(search_df: pd.DataFrame, merged_df: pd.DataFrame):
    report = {}

    # Row counts
    report["search_rows"] = len(search_df)
    report["merged_rows"] = len(merged_df)

    # Distinct schools
    search_schools = set(search_df["institution_name"].dropna())
    merged_schools = set(merged_df["institution_name"].dropna())

    report["search_schools"] = len(search_schools)
    report["matched_schools"] = len(merged_schools)
    report["school_match_pct"] = (
        len(merged_schools) / len(search_schools) * 100
        if len(search_schools) > 0 else 0
    )
    report["row_match_pct"] = (
        len(merged_df) / len(search_df) * 100
        if len(search_df) > 0 else 0
    )
    report["unmatched_schools"] = sorted(search_schools - merged_schools)

    # Date coverage of the matched panel
    if "date" in merged_df.columns and not merged_df.empty:
        dates = pd.to_datetime(merged_df["date"])
        report["date_range"] = (dates.min().date().isoformat(), dates.max().date().isoformat())
    else:
        report["date_range"] = ("N/A", "N/A")

    # Diagnostic interpretation
    if report["matched_schools"] == 0:
        report["diagnosis"] = (
            "No schools survived linkage. The link file names probably do not "
            "match the search export names, or the earnings IDs use a different key."
        )
    elif report["school_match_pct"] < 50:
        report["diagnosis"] = (
            "Low coverage (<50% of schools). Many schools were dropped as ambiguous "
            "or lack earnings data; the DID estimate may not represent the full sample."
        )
    else:
        report["diagnosis"] = "Search panel and Scorecard data appear reasonably aligned."

    return report
