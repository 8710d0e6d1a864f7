"""
Pipeline Configuration

Defaults can be overridden through environment variables (a local .env file
is honoured) or by passing values directly, which is what the tests do.
"""

import os
from datetime import date
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

# College Scorecard public release
DEFAULT_RELEASE_DATE = date(2015, 9, 12)


class PipelineConfig(BaseModel):
    data_dir: str = Field("data_raw", description="Directory holding all raw inputs")
    output_dir: str = Field("data_output", description="Directory for panel and regression outputs")
    trends_pattern: str = Field(
        "trends_up_to_*.csv",
        description="Glob (relative to data_dir) matching the search-interest exports"
    )
    scorecard_file: str = Field(
        "Most+Recent+Cohorts+(Scorecard+Elements).csv",
        description="Institution-level earnings export"
    )
    id_link_file: str = Field("id_name_link.csv", description="School name to institution ID link file")
    release_date: date = Field(DEFAULT_RELEASE_DATE, description="First date counted as post-release")
    predominant_degree: Optional[int] = Field(
        None,
        description="Keep only institutions with this PREDDEG code (3 = bachelor's); None keeps all"
    )
    significance_level: float = Field(0.05, gt=0.0, lt=1.0)

    @property
    def trends_glob(self) -> str:
        return os.path.join(self.data_dir, self.trends_pattern)

    @property
    def scorecard_path(self) -> str:
        return os.path.join(self.data_dir, self.scorecard_file)

    @property
    def id_link_path(self) -> str:
        return os.path.join(self.data_dir, self.id_link_file)

    @classmethod
    def from_env(cls, **overrides) -> "PipelineConfig":
        """Build a config from environment variables, then apply non-None overrides."""
        env_map = {
            "data_dir": "DATA_DIR",
            "output_dir": "OUTPUT_DIR",
            "trends_pattern": "TRENDS_PATTERN",
            "scorecard_file": "SCORECARD_FILE",
            "id_link_file": "ID_LINK_FILE",
            "release_date": "RELEASE_DATE",
            "predominant_degree": "PREDOMINANT_DEGREE",
            "significance_level": "SIGNIFICANCE_LEVEL",
        }
        values = {}
        for field, var in env_map.items():
            raw = os.getenv(var)
            if raw not in (None, ""):
                values[field] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
