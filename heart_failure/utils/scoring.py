"""
Scoring functions for binary outcome predictions.

Both scorers take true 0/1 labels and predicted probabilities of the positive
class. Probabilities are converted to classes with a single shared rule:
``p >= 0.5`` is class 1, anything below is class 0. A probability of exactly
0.5 therefore counts as a positive prediction.

Zero denominators in F1
-----------------------
Precision is undefined when nothing is predicted positive and recall is
undefined when there are no positive labels. When at least one of TP, FP or FN
is non-zero, F1 still has a well defined limit ``2TP / (2TP + FP + FN)``
(which is 0 whenever TP is 0); that value is returned and a
``DegenerateScoreWarning`` is issued. When TP, FP and FN are all zero F1 is
undefined and ``DegenerateScoreError`` is raised. NaN is never returned.
"""

import warnings
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..config.settings import AnalysisConfig
from ..exceptions import DegenerateScoreError, DegenerateScoreWarning, InvalidInputError

ArrayLike = Union[Sequence[float], np.ndarray, pd.Series]


@dataclass(frozen=True)
class ConfusionCounts:
    """Container for 2x2 confusion matrix counts."""
    tp: int
    tn: int
    fp: int
    fn: int

    @property
    def total(self) -> int:
        return self.tp + self.tn + self.fp + self.fn


def threshold_probabilities(y_pred_prob: ArrayLike,
                            threshold: float = AnalysisConfig.DECISION_THRESHOLD) -> np.ndarray:
    """
    Map predicted probabilities to 0/1 classes.

    Args:
        y_pred_prob: Predicted probabilities of the positive class
        threshold: Probabilities at or above this value become class 1

    Returns:
        Integer array of predicted classes
    """
    probs = np.asarray(y_pred_prob, dtype=float)
    return (probs >= threshold).astype(int)


def _validate_inputs(y_true: ArrayLike, y_pred_prob: ArrayLike) -> Tuple[np.ndarray, np.ndarray]:
    """Check shapes and value ranges, returning clean numpy arrays."""
    try:
        labels = np.asarray(y_true, dtype=float).ravel()
        probs = np.asarray(y_pred_prob, dtype=float).ravel()
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Labels and probabilities must be numeric: {e}") from e

    if len(labels) != len(probs):
        raise InvalidInputError(
            f"Length mismatch: {len(labels)} labels vs {len(probs)} predictions"
        )
    if len(labels) == 0:
        raise InvalidInputError("Cannot score an empty set of predictions")
    if not np.all(np.isin(labels, (0.0, 1.0))):
        raise InvalidInputError("True labels must be 0 or 1")
    if not np.all(np.isfinite(probs)):
        raise InvalidInputError("Predicted probabilities must be finite")
    if np.any((probs < 0.0) | (probs > 1.0)):
        raise InvalidInputError("Predicted probabilities must lie in [0, 1]")

    return labels.astype(int), probs


def confusion_counts(y_true: ArrayLike, y_pred_prob: ArrayLike) -> ConfusionCounts:
    """
    Count TP, TN, FP and FN after thresholding the predictions.

    Args:
        y_true: True 0/1 labels
        y_pred_prob: Predicted probabilities of the positive class

    Returns:
        ConfusionCounts
    """
    labels, probs = _validate_inputs(y_true, y_pred_prob)
    predicted = threshold_probabilities(probs)

    return ConfusionCounts(
        tp=int(np.sum((labels == 1) & (predicted == 1))),
        tn=int(np.sum((labels == 0) & (predicted == 0))),
        fp=int(np.sum((labels == 0) & (predicted == 1))),
        fn=int(np.sum((labels == 1) & (predicted == 0))),
    )


def f1_score(y_true: ArrayLike, y_pred_prob: ArrayLike) -> float:
    """
    F1 score (harmonic mean of precision and recall) on thresholded predictions.

    Args:
        y_true: True 0/1 labels
        y_pred_prob: Predicted probabilities of the positive class

    Returns:
        F1 score in [0, 1]

    Raises:
        InvalidInputError: On malformed inputs
        DegenerateScoreError: If there are no positive labels and no positive predictions
    """
    counts = confusion_counts(y_true, y_pred_prob)
    tp, fp, fn = counts.tp, counts.fp, counts.fn

    if tp + fp == 0 or tp + fn == 0:
        denominator = 2 * tp + fp + fn
        if denominator == 0:
            raise DegenerateScoreError(
                "F1 is undefined: no positive labels and no positive predictions"
            )
        undefined = 'precision' if tp + fp == 0 else 'recall'
        warnings.warn(
            f"F1 {undefined} is undefined (TP={tp}, FP={fp}, FN={fn}); "
            f"using limit value {2 * tp / denominator:.3f}",
            DegenerateScoreWarning,
            stacklevel=2,
        )
        return 2 * tp / denominator

    # Both defined; they are both zero only when TP is zero
    precision = tp / (tp + fp)
    recall = tp / (tp + fn)
    if precision + recall == 0:
        return 0.0
    return 2 * precision * recall / (precision + recall)


def mae_score(y_true: ArrayLike, y_pred_prob: ArrayLike) -> float:
    """
    Mean absolute error between labels and thresholded predictions.

    On 0/1 labels this is the misclassification rate (1 - accuracy).

    Args:
        y_true: True 0/1 labels
        y_pred_prob: Predicted probabilities of the positive class

    Returns:
        MAE in [0, 1]
    """
    labels, probs = _validate_inputs(y_true, y_pred_prob)
    predicted = threshold_probabilities(probs)
    return float(np.mean(np.abs(labels - predicted)))


# Scorers by name, used by the comparison tables and the CLI
SCORERS = {
    'f1': f1_score,
    'mae': mae_score,
}
