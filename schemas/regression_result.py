from pydantic import BaseModel, Field
from typing import Dict, List

import pandas as pd


class CoefficientEstimate(BaseModel):
    """One row of the DID coefficient table."""

    term: str = Field(..., description="Regressor name (intercept, high_earning, post_period, treated)")
    estimate: float = Field(..., description="OLS point estimate")
    std_error: float = Field(..., description="Conventional (non-robust) standard error")
    t_value: float = Field(..., description="Estimate divided by its standard error")
    p_value: float = Field(..., description="Two-sided p-value")
    significant: bool = Field(..., description="True when p_value is below the configured significance level")


class RegressionResult(BaseModel):
    """
    Difference-in-differences fit over the weekly panel.

    The `treated` coefficient is the DID estimate: the extra change in search
    interest for high-earning schools after the release, net of the
    high_earning and post_period main effects.
    """

    formula: str
    coefficients: Dict[str, CoefficientEstimate]
    nobs: int = Field(..., ge=0, description="Panel rows used in the fit")
    r_squared: float
    adj_r_squared: float
    rows_dropped: int = Field(0, ge=0, description="Panel rows dropped for a missing outcome or regressor")
    significance_level: float = 0.05

    @property
    def did_estimate(self) -> CoefficientEstimate:
        return self.coefficients["treated"]

    def terms(self) -> List[str]:
        return list(self.coefficients)

    def to_frame(self) -> pd.DataFrame:
        """Coefficient table, one row per term, in model order."""
        return pd.DataFrame([self.coefficients[t].model_dump() for t in self.terms()])
