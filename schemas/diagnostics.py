from pydantic import BaseModel, Field
from typing import List, Optional


class PipelineDiagnostics(BaseModel):
    """
    Audit counts collected across one pipeline run.

    IMPORTANT:
    - Every row the pipeline drops or degrades to missing is counted here.
    - Inner joins and ambiguity filters shrink coverage on purpose; these
      counts are how that under-coverage stays visible.
    """

    files_loaded: List[str] = Field(default_factory=list, description="Search-interest files read, in order")
    rows_ingested: int = 0
    non_numeric_index_values: int = Field(0, description="raw_index cells that were not numeric")
    excluded_date_rows: int = Field(0, description="Rows dropped because the period token had no parseable date")
    missing_standardized_values: int = Field(0, description="Rows whose keyword group could not be standardized")

    ambiguous_names_dropped: int = Field(0, description="School names linked to more than one institution ID")
    ambiguous_link_rows_dropped: int = 0
    duplicate_earnings_ids_dropped: int = Field(0, description="Institution IDs repeated in the earnings export")
    unmatched_name_rows: int = Field(0, description="Search rows with no uniquely linked institution ID")
    unmatched_earnings_rows: int = Field(0, description="Linked search rows with no earnings record")
    merged_rows: int = 0

    earnings_coercion_failures: int = Field(0, description="Earnings cells that were present but not numeric")
    median_earnings: Optional[float] = None

    empty_aggregate_groups: int = Field(0, description="Panel groups with no standardized values")
    panel_rows: int = 0
    regression_rows_dropped: int = 0
