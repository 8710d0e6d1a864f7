"""
File: main.py
Purpose:
    Entry point for the College Scorecard search-interest DID pipeline.
    - Loads and combines raw search-interest exports
    - Parses period dates and standardizes the index per keyword
    - Links schools to Scorecard earnings (unique names only)
    - Derives the high-earning / post-release treatment variables
    - Builds the weekly panel and estimates the DID regression
    - Saves outputs into the data_output directory
"""


import os
import sys
import json
import logging
import argparse
from dataclasses import dataclass

import pandas as pd
from pydantic import ValidationError

from data_ingestion.load_trends import combine_trends_files
from data_ingestion.normalize_dates import normalize_period_dates
from data_ingestion.standardize_index import standardize_by_keyword
from data_ingestion.load_scorecard import load_scorecard_csv, load_id_link_csv
from data_ingestion.resolve_identifiers import resolve_identifiers
from data_ingestion.merge_scorecard import merge_trends_scorecard
from data_analysis.derive_variables import add_did_variables
from data_analysis.build_weekly_panel import build_weekly_panel, save_panel_as_parquet, save_panel_as_csv
from data_analysis.build_plot_data import build_group_trends
from data_analysis.did_regression import estimate_did, save_regression_result
from schemas.diagnostics import PipelineDiagnostics
from schemas.regression_result import RegressionResult
from utils.config import PipelineConfig
from utils.errors import MissingInputError, PipelineError
from utils.validate_alignment import validate_alignment

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s')


@dataclass
class PipelineOutputs:
    derived: pd.DataFrame
    panel: pd.DataFrame
    group_trends: pd.DataFrame
    result: RegressionResult
    diagnostics: PipelineDiagnostics
    coverage: dict


def run_pipeline(config: PipelineConfig) -> PipelineOutputs:
    """
    Run every stage in order. On a fatal stage failure the PipelineError is
    re-raised with the diagnostics collected so far attached.
    """
    diagnostics = PipelineDiagnostics()
    try:
        # --- Step 1: Ingest search-interest exports ---
        logging.info(f"Step 1: Loading search files matching {config.trends_glob}")
        search, paths, non_numeric = combine_trends_files(config.trends_glob)
        diagnostics.files_loaded = [os.path.basename(p) for p in paths]
        diagnostics.rows_ingested = len(search)
        diagnostics.non_numeric_index_values = non_numeric

        # --- Step 2: Period tokens → dates ---
        logging.info("Step 2: Parsing period dates")
        search, excluded = normalize_period_dates(search)
        diagnostics.excluded_date_rows = excluded

        # --- Step 3: Standardize index within keyword ---
        logging.info("Step 3: Standardizing search index by keyword")
        search, missing_std = standardize_by_keyword(search)
        diagnostics.missing_standardized_values = missing_std

        # --- Step 4: Resolve name → ID links ---
        logging.info(f"Step 4: Resolving school names from {config.id_link_path}")
        links, names_dropped, link_rows_dropped = resolve_identifiers(load_id_link_csv(config.id_link_path))
        diagnostics.ambiguous_names_dropped = names_dropped
        diagnostics.ambiguous_link_rows_dropped = link_rows_dropped

        # --- Step 5: Merge with Scorecard earnings ---
        logging.info(f"Step 5: Merging with Scorecard earnings from {config.scorecard_path}")
        earnings = load_scorecard_csv(config.scorecard_path, predominant_degree=config.predominant_degree)
        merged, merge_counts = merge_trends_scorecard(search, links, earnings)
        diagnostics.unmatched_name_rows = merge_counts['unmatched_name_rows']
        diagnostics.unmatched_earnings_rows = merge_counts['unmatched_earnings_rows']
        diagnostics.duplicate_earnings_ids_dropped = merge_counts['duplicate_earnings_ids_dropped']
        diagnostics.merged_rows = len(merged)
        coverage = validate_alignment(search, merged)
        logging.info(f"Coverage: {coverage['matched_schools']}/{coverage['search_schools']} schools. {coverage['diagnosis']}")

        # --- Step 6: Derive DID variables ---
        logging.info(f"Step 6: Deriving treatment variables (release date {config.release_date})")
        derived, median_earnings, failures = add_did_variables(merged, config.release_date)
        diagnostics.median_earnings = None if pd.isna(median_earnings) else median_earnings
        diagnostics.earnings_coercion_failures = failures

        # --- Step 7: Weekly panel ---
        logging.info("Step 7: Building weekly panel")
        panel, empty_groups = build_weekly_panel(derived)
        diagnostics.empty_aggregate_groups = empty_groups
        diagnostics.panel_rows = len(panel)

        # --- Step 8: DID regression ---
        logging.info("Step 8: Estimating DID regression")
        result = estimate_did(panel, significance_level=config.significance_level)
        diagnostics.regression_rows_dropped = result.rows_dropped
    except PipelineError as e:
        e.diagnostics = diagnostics
        raise
    except FileNotFoundError as e:
        path = e.filename or config.trends_glob
        raise MissingInputError(f"Missing input: {path}", path=path, diagnostics=diagnostics) from e

    return PipelineOutputs(
        derived=derived,
        panel=panel,
        group_trends=build_group_trends(panel),
        result=result,
        diagnostics=diagnostics,
        coverage=coverage,
    )


def save_diagnostics(diagnostics: PipelineDiagnostics, output_dir: str):
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "diagnostics.json")
    with open(path, "w") as f:
        json.dump(diagnostics.model_dump(), f, indent=2)
    return path


def save_outputs(outputs: PipelineOutputs, output_dir: str):
    save_panel_as_parquet(outputs.panel, output_dir)
    save_panel_as_csv(outputs.panel, output_dir)
    outputs.group_trends.to_csv(os.path.join(output_dir, "group_trends.csv"), index=False)
    save_regression_result(outputs.result, output_dir)
    save_diagnostics(outputs.diagnostics, output_dir)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run the Scorecard search-interest DID pipeline end to end.")
    parser.add_argument("--data-dir", help="Directory with the raw search, earnings and link files")
    parser.add_argument("--output-dir", help="Directory for panel and regression outputs")
    parser.add_argument("--release-date", help="Release cutoff date (YYYY-MM-DD)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        config = PipelineConfig.from_env(
            data_dir=args.data_dir,
            output_dir=args.output_dir,
            release_date=args.release_date,
        )
    except ValidationError as e:
        logging.error(f"Invalid configuration: {e}")
        return 2

    try:
        outputs = run_pipeline(config)
    except PipelineError as e:
        logging.error(f"Pipeline failed: {e}")
        if e.diagnostics is not None:
            logging.error(f"Diagnostics at failure: {e.diagnostics.model_dump()}")
            save_diagnostics(e.diagnostics, config.output_dir)
        return 1

    save_outputs(outputs, config.output_dir)
    print(outputs.result.to_frame().to_string(index=False))
    print(f"SUCCESS: Outputs saved to {config.output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
