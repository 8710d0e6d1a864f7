"""Shared fixtures: small Trends / Scorecard / link files written into tmp_path."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.fixture_data import AMBIGUOUS_SCHOOL, POST_WEEKS, PRE_WEEKS, SCHOOLS, trend_rows, write_csv
from utils.config import PipelineConfig


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """A complete raw-data directory with pre- and post-release search files."""
    pre = trend_rows(PRE_WEEKS)
    pre.append({
        "schname": "Alpha University",
        "keyword": "alpha university",
        "monthorweek": "week unknown",
        "keynum": 0,
        "index": 55,
    })
    write_csv(tmp_path / "trends_up_to_inter_1.csv", pre)
    write_csv(tmp_path / "trends_up_to_inter_2.csv", trend_rows(POST_WEEKS))

    link = [{"unitid": uid, "opeid": f"00{uid[-3:]}00", "schname": name} for name, uid, _ in SCHOOLS]
    for uid in AMBIGUOUS_SCHOOL[1]:
        link.append({"unitid": uid, "opeid": f"00{uid[-3:]}00", "schname": AMBIGUOUS_SCHOOL[0]})
    write_csv(tmp_path / "id_name_link.csv", link)

    scorecard = [{"UNITID": uid, "INSTNM": name, "PREDDEG": 3, "md_earn_wne_p10-REPORTED-EARNINGS": earn}
                 for name, uid, earn in SCHOOLS]
    for uid in AMBIGUOUS_SCHOOL[1]:
        scorecard.append({"UNITID": uid, "INSTNM": AMBIGUOUS_SCHOOL[0], "PREDDEG": 3,
                          "md_earn_wne_p10-REPORTED-EARNINGS": "45000"})
    write_csv(tmp_path / "Most+Recent+Cohorts+(Scorecard+Elements).csv", scorecard)
    return tmp_path


@pytest.fixture
def config(data_dir: Path) -> PipelineConfig:
    return PipelineConfig(data_dir=str(data_dir), output_dir=str(data_dir / "out"))
