class TrackingError(Exception):
    """Base class for failures that abort the reconciliation of one frame."""


class CostMatrixError(TrackingError, ValueError):
    """The cost matrix handed to the solver is malformed (shape, sign, NaN)."""


class SolverContractError(TrackingError, RuntimeError):
    """The solver returned something that is not a perfect matching."""
