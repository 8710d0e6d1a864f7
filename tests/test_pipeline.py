"""End-to-end tests for the full search-interest DID pipeline."""

from __future__ import annotations

import json
import os
from datetime import date

import pandas as pd
import pytest

from data_analysis.derive_variables import add_did_variables
from data_ingestion.load_scorecard import load_id_link_csv, load_scorecard_csv
from data_ingestion.load_trends import combine_trends_files
from data_ingestion.merge_scorecard import merge_trends_scorecard
from data_ingestion.normalize_dates import normalize_period_dates
from data_ingestion.resolve_identifiers import resolve_identifiers
from data_ingestion.standardize_index import standardize_by_keyword
from main import main, run_pipeline
from tests.fixture_data import POST_WEEKS, write_csv
from utils.config import PipelineConfig
from utils.errors import MissingInputError, RankDeficientDesignError


def test_pipeline_runs_end_to_end_with_diagnostics(config) -> None:
    outputs = run_pipeline(config)
    diag = outputs.diagnostics

    assert diag.files_loaded == ["trends_up_to_inter_1.csv", "trends_up_to_inter_2.csv"]
    assert diag.rows_ingested == 49
    assert diag.excluded_date_rows == 1
    assert diag.ambiguous_names_dropped == 1
    assert diag.unmatched_name_rows == 8
    assert diag.earnings_coercion_failures == 8
    assert diag.median_earnings == pytest.approx(40000.0)
    assert diag.panel_rows == 20
    assert diag.regression_rows_dropped == 4
    assert outputs.result.nobs == 16
    assert outputs.coverage["matched_schools"] == 5


def test_ambiguous_school_is_absent_from_every_output(config) -> None:
    outputs = run_pipeline(config)

    assert "Epsilon University" not in set(outputs.derived["institution_name"])
    assert "Epsilon University" not in set(outputs.panel["institution_name"])
    assert "Epsilon University" in outputs.coverage["unmatched_schools"]


def test_suppressed_earnings_become_missing_without_halting(config) -> None:
    outputs = run_pipeline(config)

    zeta = outputs.derived[outputs.derived["institution_name"] == "Zeta College"]
    assert len(zeta) == 8
    assert zeta["earnings"].isna().all()
    assert zeta["high_earning"].isna().all()
    assert zeta["treated"].isna().all()


def test_high_earners_are_treated_only_after_release(config) -> None:
    panel = run_pipeline(config).panel

    alpha = panel[panel["institution_name"] == "Alpha University"]
    assert alpha["high_earning"].tolist() == [1, 1, 1, 1]
    assert alpha["post_period"].tolist() == [0, 0, 1, 1]
    assert alpha["treated"].tolist() == [0, 0, 1, 1]
    gamma = panel[panel["institution_name"] == "Gamma State University"]
    assert gamma["treated"].tolist() == [0, 0, 0, 0]


def test_pipeline_is_idempotent(config) -> None:
    first = run_pipeline(config)
    second = run_pipeline(config)

    pd.testing.assert_frame_equal(first.panel, second.panel)
    assert first.result.model_dump() == second.result.model_dump()


def test_release_date_is_configurable(data_dir) -> None:
    """Moving the cutoff past every observation leaves post_period constant."""
    late = PipelineConfig(data_dir=str(data_dir), release_date=date(2016, 1, 1))

    with pytest.raises(RankDeficientDesignError) as excinfo:
        run_pipeline(late)

    assert excinfo.value.regressors == ["post_period", "treated"]
    assert excinfo.value.diagnostics.panel_rows == 20


def test_main_writes_outputs(data_dir) -> None:
    out_dir = data_dir / "out"

    code = main(["--data-dir", str(data_dir), "--output-dir", str(out_dir)])

    assert code == 0
    for name in ["weekly_panel.parquet", "weekly_panel.csv", "did_coefficients.csv",
                 "did_result.json", "group_trends.csv", "diagnostics.json"]:
        assert os.path.exists(out_dir / name)


def test_main_reports_rank_deficiency_instead_of_crashing(data_dir) -> None:
    os.remove(data_dir / "trends_up_to_inter_1.csv")
    out_dir = data_dir / "out"

    code = main(["--data-dir", str(data_dir), "--output-dir", str(out_dir)])

    assert code == 1
    with open(out_dir / "diagnostics.json") as f:
        diagnostics = json.load(f)
    assert diagnostics["files_loaded"] == ["trends_up_to_inter_2.csv"]


def test_two_file_scenario_yields_treated_rows(tmp_path) -> None:
    """A high-earning school observed after release across two files is treated."""
    write_csv(tmp_path / "trends_up_to_a.csv", [
        {"schname": "Alpha University", "keyword": "alpha", "monthorweek": POST_WEEKS[0], "index": 50},
        {"schname": "Alpha University", "keyword": "alpha", "monthorweek": POST_WEEKS[1], "index": 100},
        {"schname": "Low College", "keyword": "low", "monthorweek": POST_WEEKS[0], "index": 20},
        {"schname": "Low College", "keyword": "low", "monthorweek": POST_WEEKS[1], "index": 30},
    ])
    write_csv(tmp_path / "trends_up_to_b.csv", [
        {"schname": "Alpha University", "keyword": "alpha", "monthorweek": POST_WEEKS[0], "index": 0},
        {"schname": "Alpha University", "keyword": "alpha", "monthorweek": POST_WEEKS[1], "index": 50},
        {"schname": "Low College", "keyword": "low", "monthorweek": POST_WEEKS[0], "index": 25},
        {"schname": "Low College", "keyword": "low", "monthorweek": POST_WEEKS[1], "index": 35},
    ])
    link_path = write_csv(tmp_path / "link.csv", [
        {"unitid": 100001, "schname": "Alpha University"},
        {"unitid": 100009, "schname": "Low College"},
    ])
    earnings_path = write_csv(tmp_path / "scorecard.csv", [
        {"UNITID": "100001", "md_earn_wne_p10-REPORTED-EARNINGS": "90000"},
        {"UNITID": "100009", "md_earn_wne_p10-REPORTED-EARNINGS": "10000"},
    ])

    search, _, _ = combine_trends_files(str(tmp_path / "trends_up_to_*.csv"))
    search, _ = normalize_period_dates(search)
    search, _ = standardize_by_keyword(search)
    links, _, _ = resolve_identifiers(load_id_link_csv(str(link_path)))
    merged, _ = merge_trends_scorecard(search, links, load_scorecard_csv(str(earnings_path)))
    derived, median, _ = add_did_variables(merged, date(2015, 9, 12))

    alpha = derived[derived["institution_name"] == "Alpha University"]
    assert len(alpha) == 4
    assert median == pytest.approx(50000.0)
    assert alpha["high_earning"].tolist() == [1, 1, 1, 1]
    assert alpha["post_period"].tolist() == [1, 1, 1, 1]
    assert alpha["treated"].tolist() == [1, 1, 1, 1]
    assert alpha["standardized_index"].mean() == pytest.approx(0.0)


def test_main_reports_missing_link_file_with_diagnostics(data_dir) -> None:
    os.remove(data_dir / "id_name_link.csv")
    out_dir = data_dir / "out"

    code = main(["--data-dir", str(data_dir), "--output-dir", str(out_dir)])

    assert code == 1
    with open(out_dir / "diagnostics.json") as f:
        diagnostics = json.load(f)
    assert diagnostics["rows_ingested"] == 49


def test_missing_trend_files_raise_missing_input_error(tmp_path) -> None:
    config = PipelineConfig(data_dir=str(tmp_path))

    with pytest.raises(MissingInputError) as excinfo:
        run_pipeline(config)

    assert excinfo.value.path == config.trends_glob
    assert excinfo.value.diagnostics.rows_ingested == 0


def test_main_rejects_invalid_release_date(data_dir) -> None:
    code = main(["--data-dir", str(data_dir), "--release-date", "2015-13-40"])

    assert code == 2
