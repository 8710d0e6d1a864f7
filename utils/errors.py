"""
Pipeline Error Types

Structural failures abort the run and carry the diagnostics collected so far.
Row-local problems (bad period tokens, non-numeric earnings) never reach the
caller as exceptions; they are counted and the affected values become missing.
"""


class PipelineError(Exception):
    """Base class for fatal pipeline failures."""

    def __init__(self, message, diagnostics=None):
        super().__init__(message)
        self.diagnostics = diagnostics


class SchemaMismatchError(PipelineError):
    """Input files disagree on structure or lack a required column."""

    def __init__(self, message, path=None, columns=None, diagnostics=None):
        super().__init__(message, diagnostics=diagnostics)
        self.path = path
        self.columns = sorted(columns) if columns else []


class DateParseError(ValueError):
    """A period token does not start with a YYYY-MM-DD date."""

    def __init__(self, token):
        super().__init__(f"Cannot parse a date from period token {token!r}")
        self.token = token


class RankDeficientDesignError(PipelineError):
    """The DID design matrix cannot identify all coefficients."""

    def __init__(self, message, regressors=None, diagnostics=None):
        super().__init__(message, diagnostics=diagnostics)
        self.regressors = list(regressors) if regressors else []


class MissingInputError(PipelineError):
    """A required input file is absent or a file pattern matched nothing."""

    def __init__(self, message, path=None, diagnostics=None):
        super().__init__(message, diagnostics=diagnostics)
        self.path = path
