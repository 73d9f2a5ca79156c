"""
Exception types raised by the scoring and cross-validation code.
"""

from typing import Optional


def _with_fold(message: str, fold: Optional[int]) -> str:
    if fold is None:
        return message
    return f"Fold {fold}: {message}"


class InvalidInputError(ValueError):
    """
    Arguments or data that cannot be evaluated (bad K, empty data, out-of-range
    probabilities). ``fold`` is set when the bad input surfaced while scoring
    one fold.
    """

    def __init__(self, message: str, fold: Optional[int] = None):
        self.fold = fold
        super().__init__(_with_fold(message, fold))


class FitFailureError(RuntimeError):
    """
    The model-fitting collaborator failed for one fold.

    The original exception is chained as ``__cause__`` when there is one.
    ``stage`` is ``'fit'`` when training raised and ``'predict'`` when the
    fitted model could not score the held-out records or returned the wrong
    number of probabilities.
    """

    def __init__(self, fold: int, message: str, stage: str = 'fit'):
        self.fold = fold
        self.stage = stage
        super().__init__(f"Model {stage} failed in fold {fold}: {message}")


class DegenerateScoreError(ArithmeticError):
    """A score is undefined for the given labels and predictions."""

    def __init__(self, message: str, fold: Optional[int] = None):
        self.fold = fold
        super().__init__(_with_fold(message, fold))


class DegenerateScoreWarning(RuntimeWarning):
    """Precision or recall was undefined and F1 fell back to its limit value."""
