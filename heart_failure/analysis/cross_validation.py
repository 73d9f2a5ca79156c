"""
K-fold cross-validation harness.

Partitions a dataset into K folds, refits a model on K-1 folds, scores the
held-out fold and averages the per-fold scores. The harness only relies on
the ``predict_probability`` capability of the fitted model, so GLMs, SVMs
and test doubles are interchangeable.

Folds are independent: they can run one after another or on a thread pool
without changing the result. Any failure aborts the whole evaluation and no
partial average is returned.
"""

import threading
import warnings
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.model_selection import KFold

from ..config.settings import AnalysisConfig
from ..exceptions import (
    DegenerateScoreError, DegenerateScoreWarning, FitFailureError, InvalidInputError,
)
from ..models.base import FitFunction

ScoreFunction = Callable[[np.ndarray, np.ndarray], float]
DatasetLike = Union[pd.DataFrame, Sequence[Dict]]

# catch_warnings swaps process-wide state, so fold threads score one at a time
_SCORING_LOCK = threading.Lock()


@dataclass
class FoldResult:
    """Container for the outcome of a single fold."""
    fold: int
    train_size: int
    validation_size: int
    score: float
    degenerate: bool = False


@dataclass
class CrossValidationResult:
    """Container for a complete K-fold evaluation."""
    k: int
    seed: Optional[int]
    fold_results: List[FoldResult] = field(default_factory=list)

    @property
    def fold_scores(self) -> List[float]:
        return [r.score for r in self.fold_results]

    @property
    def fold_sizes(self) -> List[int]:
        return [r.validation_size for r in self.fold_results]

    @property
    def mean_score(self) -> float:
        return float(np.mean(self.fold_scores))

    @property
    def std_score(self) -> float:
        return float(np.std(self.fold_scores))

    @property
    def degenerate_folds(self) -> List[int]:
        """Folds whose scorer emitted a DegenerateScoreWarning."""
        return [r.fold for r in self.fold_results if r.degenerate]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([vars(r) for r in self.fold_results])


def _validate_k(n_records: int, k: int):
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise InvalidInputError(f"Number of folds must be an integer, got {k!r}")
    if n_records == 0:
        raise InvalidInputError("Dataset is empty")
    if k < 2:
        raise InvalidInputError(f"Number of folds must be at least 2, got {k}")
    if k > n_records:
        raise InvalidInputError(
            f"Number of folds ({k}) cannot exceed number of records ({n_records})"
        )


def assign_folds(n_records: int, k: int,
                 seed: Optional[int] = AnalysisConfig.RANDOM_SEED) -> np.ndarray:
    """
    Assign every record index to one of K folds.

    Indices are shuffled with ``seed`` and cut into contiguous blocks; the
    first ``n_records % k`` folds receive one extra record.

    Args:
        n_records: Number of records in the dataset
        k: Number of folds
        seed: Random seed for the shuffle

    Returns:
        Integer array of length ``n_records`` with fold ids in [0, k)
    """
    _validate_k(n_records, k)

    folds = np.empty(n_records, dtype=int)
    kf = KFold(n_splits=int(k), shuffle=True, random_state=seed)
    for fold_idx, (_, val_idx) in enumerate(kf.split(np.arange(n_records))):
        folds[val_idx] = fold_idx

    return folds


class CrossValidator:
    """
    K-fold cross-validation of a model-fitting procedure.

    Holds no state between calls: the dataset, fitting function, scorer,
    fold count and seed are all passed to ``evaluate``.
    """

    def __init__(self, response: str = AnalysisConfig.RESPONSE,
                 n_workers: Optional[int] = None, verbose: bool = False):
        """
        Initialize the cross-validator.

        Args:
            response: Name of the binary response column
            n_workers: Thread pool size for fold evaluation. None or 1 runs sequentially.
            verbose: Whether to print per-fold progress
        """
        self.response = response
        self.n_workers = n_workers
        self.verbose = verbose

    def _prepare_dataset(self, dataset: DatasetLike, k: int) -> pd.DataFrame:
        """Validate the dataset and K before any fold work starts."""
        if isinstance(dataset, pd.DataFrame):
            df = dataset
        else:
            try:
                df = pd.DataFrame(list(dataset))
            except (TypeError, ValueError) as e:
                raise InvalidInputError(f"Dataset must be a DataFrame or a sequence of records: {e}") from e

        _validate_k(len(df), k)

        if self.response not in df.columns:
            raise InvalidInputError(f"Response column '{self.response}' not found in dataset")

        missing = df.columns[df.isnull().any()].tolist()
        if missing:
            raise InvalidInputError(f"Dataset has missing values in columns: {missing}")

        labels = pd.to_numeric(df[self.response], errors='coerce')
        if not labels.isin([0, 1]).all():
            raise InvalidInputError(f"Response column '{self.response}' must contain only 0 and 1")

        return df

    def _score(self, fold_idx: int, score_fn: ScoreFunction, y_true: np.ndarray,
               y_pred_prob: np.ndarray) -> Tuple[float, bool]:
        """Apply one scorer, returning the score and whether it was degenerate."""
        with _SCORING_LOCK:
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter('always')
                try:
                    score = float(score_fn(y_true, y_pred_prob))
                except DegenerateScoreError as e:
                    raise DegenerateScoreError(str(e), fold=fold_idx) from e
                except InvalidInputError as e:
                    raise InvalidInputError(str(e), fold=fold_idx) from e

            for w in caught:
                warnings.warn_explicit(w.message, w.category, w.filename, w.lineno)

        degenerate = any(issubclass(w.category, DegenerateScoreWarning) for w in caught)
        return score, degenerate

    def _run_fold(self, df: pd.DataFrame, folds: np.ndarray, fold_idx: int,
                  fit_fn: FitFunction,
                  scorers: Dict[str, ScoreFunction]) -> Dict[str, FoldResult]:
        """Fit on all folds but one and score the held-out fold with every scorer."""
        in_fold = folds == fold_idx
        train_data = df.iloc[np.where(~in_fold)[0]].copy()
        validation_data = df.iloc[np.where(in_fold)[0]].copy()

        try:
            model = fit_fn(train_data)
        except Exception as e:
            raise FitFailureError(fold_idx, str(e), stage='fit') from e

        y_true = validation_data[self.response].to_numpy(dtype=int)
        features = validation_data.drop(columns=[self.response])

        try:
            y_pred_prob = np.asarray(model.predict_probability(features), dtype=float).ravel()
        except Exception as e:
            raise FitFailureError(fold_idx, str(e), stage='predict') from e

        if len(y_pred_prob) != len(validation_data):
            raise FitFailureError(
                fold_idx,
                f"expected {len(validation_data)} probabilities, got {len(y_pred_prob)}",
                stage='predict'
            )

        results = {}
        for name, score_fn in scorers.items():
            score, degenerate = self._score(fold_idx, score_fn, y_true, y_pred_prob)
            results[name] = FoldResult(
                fold=fold_idx,
                train_size=len(train_data),
                validation_size=len(validation_data),
                score=score,
                degenerate=degenerate,
            )

        if self.verbose:
            scores = ", ".join(
                f"{name}={r.score:.4f}{' ⚠️ degenerate' if r.degenerate else ''}"
                for name, r in results.items()
            )
            print(f"    Fold {fold_idx + 1}: train={len(train_data)}, "
                  f"validation={len(validation_data)}, {scores}")

        return results

    def cross_validate_scorers(self, dataset: DatasetLike, fit_fn: FitFunction,
                               scorers: Dict[str, ScoreFunction],
                               k: int = AnalysisConfig.CV_FOLDS,
                               seed: Optional[int] = AnalysisConfig.RANDOM_SEED
                               ) -> Dict[str, CrossValidationResult]:
        """
        Run K-fold cross-validation once and apply several scorers per fold.

        Each fold is fitted and predicted once; every scorer sees the same
        held-out predictions.

        Args:
            dataset: DataFrame (or sequence of record dicts) including the response column
            fit_fn: Takes a training subset and returns a fitted model
            scorers: Scoring functions by name
            k: Number of folds
            seed: Random seed for fold assignment

        Returns:
            CrossValidationResult per scorer name

        Raises:
            InvalidInputError: If K, the dataset or a fold's predictions are invalid
            FitFailureError: If fitting or prediction fails in any fold
            DegenerateScoreError: If a score is undefined in any fold
        """
        if not scorers:
            raise InvalidInputError("At least one score function is required")

        df = self._prepare_dataset(dataset, k)
        folds = assign_folds(len(df), k, seed)

        if self.verbose:
            print(f"🔄 Running {k}-fold cross-validation on {len(df)} records (seed={seed})...")

        per_fold = []

        if self.n_workers is None or self.n_workers == 1:
            for fold_idx in range(k):
                per_fold.append(self._run_fold(df, folds, fold_idx, fit_fn, scorers))
        else:
            with ThreadPoolExecutor(max_workers=self.n_workers) as executor:
                future_to_fold = {
                    executor.submit(self._run_fold, df, folds, fold_idx, fit_fn, scorers): fold_idx
                    for fold_idx in range(k)
                }
                try:
                    for future in as_completed(future_to_fold):
                        per_fold.append(future.result())
                except BaseException:
                    for future in future_to_fold:
                        future.cancel()
                    raise

            per_fold.sort(key=lambda fold_results: next(iter(fold_results.values())).fold)

        results = {
            name: CrossValidationResult(k=k, seed=seed,
                                        fold_results=[fold_results[name] for fold_results in per_fold])
            for name in scorers
        }

        if self.verbose:
            for name, result in results.items():
                print(f"✅ Mean {name}: {result.mean_score:.4f} ± {result.std_score:.4f}")
                if result.degenerate_folds:
                    print(f"   ⚠️ Degenerate folds: {result.degenerate_folds}")

        return results

    def cross_validate(self, dataset: DatasetLike, fit_fn: FitFunction,
                       score_fn: ScoreFunction, k: int = AnalysisConfig.CV_FOLDS,
                       seed: Optional[int] = AnalysisConfig.RANDOM_SEED) -> CrossValidationResult:
        """
        Run K-fold cross-validation and keep per-fold detail.

        Args:
            dataset: DataFrame (or sequence of record dicts) including the response column
            fit_fn: Takes a training subset and returns a fitted model
            score_fn: Takes (true labels, predicted probabilities) and returns a score
            k: Number of folds
            seed: Random seed for fold assignment

        Returns:
            CrossValidationResult

        Raises:
            InvalidInputError: If K, the dataset or a fold's predictions are invalid
            FitFailureError: If fitting or prediction fails in any fold
            DegenerateScoreError: If the score is undefined in any fold
        """
        return self.cross_validate_scorers(dataset, fit_fn, {'score': score_fn}, k=k, seed=seed)['score']

    def evaluate(self, dataset: DatasetLike, fit_fn: FitFunction,
                 score_fn: ScoreFunction, k: int = AnalysisConfig.CV_FOLDS,
                 seed: Optional[int] = AnalysisConfig.RANDOM_SEED) -> float:
        """
        Estimate generalization performance as the mean of K per-fold scores.

        See ``cross_validate`` for arguments and errors.
        """
        return self.cross_validate(dataset, fit_fn, score_fn, k=k, seed=seed).mean_score


def evaluate(dataset: DatasetLike, fit_fn: FitFunction, score_fn: ScoreFunction,
             k: int = AnalysisConfig.CV_FOLDS,
             seed: Optional[int] = AnalysisConfig.RANDOM_SEED,
             response: str = AnalysisConfig.RESPONSE,
             n_workers: Optional[int] = None,
             verbose: bool = False) -> float:
    """Convenience wrapper around ``CrossValidator.evaluate``."""
    validator = CrossValidator(response=response, n_workers=n_workers, verbose=verbose)
    return validator.evaluate(dataset, fit_fn, score_fn, k=k, seed=seed)
