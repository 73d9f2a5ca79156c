"""
Unit Tests for the Cross-Validation Harness
Tests fold assignment, aggregation, reproducibility and failure handling
"""

import warnings

import numpy as np
import pandas as pd
import pytest

from heart_failure.analysis.cross_validation import (
    CrossValidationResult, CrossValidator, FoldResult, assign_folds, evaluate,
)
from heart_failure.config.settings import AnalysisConfig
from heart_failure.exceptions import (
    DegenerateScoreError, DegenerateScoreWarning, FitFailureError, InvalidInputError,
)
from heart_failure.models.glm_models import make_glm_fit_fn
from heart_failure.utils.scoring import f1_score, mae_score

from conftest import ConstantModel, constant_fit_fn, make_raw_records

REDUCED_FORMULA = AnalysisConfig.GLM_FORMULAS['reduced']


class TestAssignFolds:
    """Partition and balance of fold assignment"""

    @pytest.mark.parametrize('n', [2, 3, 7, 10, 37, 299])
    def test_partition_and_balance(self, n):
        for k in range(2, min(n, 12) + 1):
            folds = assign_folds(n, k, seed=3)

            assert len(folds) == n
            assert folds.min() >= 0 and folds.max() < k

            sizes = np.bincount(folds, minlength=k)
            assert sizes.sum() == n
            assert sizes.max() - sizes.min() <= 1

    def test_first_folds_get_the_extra_records(self):
        sizes = np.bincount(assign_folds(299, 5, seed=1), minlength=5)
        assert sizes.tolist() == [60, 60, 60, 60, 59]

    def test_same_seed_same_assignment(self):
        assert np.array_equal(assign_folds(100, 5, seed=11), assign_folds(100, 5, seed=11))

    def test_different_seed_different_assignment(self):
        assert not np.array_equal(assign_folds(100, 5, seed=11), assign_folds(100, 5, seed=12))

    def test_leave_one_out(self):
        folds = assign_folds(6, 6, seed=0)
        assert sorted(folds.tolist()) == list(range(6))

    @pytest.mark.parametrize('k', [1, 0, -3])
    def test_too_few_folds(self, k):
        with pytest.raises(InvalidInputError, match='at least 2'):
            assign_folds(10, k)

    def test_more_folds_than_records(self):
        with pytest.raises(InvalidInputError, match='cannot exceed'):
            assign_folds(4, 5)

    @pytest.mark.parametrize('k', [2.5, '5', True])
    def test_non_integer_folds(self, k):
        with pytest.raises(InvalidInputError, match='integer'):
            assign_folds(10, k)

    def test_empty(self):
        with pytest.raises(InvalidInputError, match='empty'):
            assign_folds(0, 2)


class TestEvaluateValidation:
    """Invalid input is rejected before any fold work"""

    def _counting_fit_fn(self):
        calls = []

        def fit_fn(train_data):
            calls.append(len(train_data))
            return ConstantModel(0.5)

        return fit_fn, calls

    def test_single_fold_rejected(self, small_data):
        fit_fn, calls = self._counting_fit_fn()
        with pytest.raises(InvalidInputError):
            evaluate(small_data, fit_fn, mae_score, k=1, seed=0)
        assert calls == []

    def test_empty_dataset(self, small_data):
        fit_fn, calls = self._counting_fit_fn()
        with pytest.raises(InvalidInputError, match='empty'):
            evaluate(small_data.iloc[0:0], fit_fn, mae_score, k=2, seed=0)
        assert calls == []

    def test_missing_values(self, small_data):
        data = small_data.copy()
        data.loc[3, 'age'] = np.nan
        fit_fn, calls = self._counting_fit_fn()
        with pytest.raises(InvalidInputError, match='missing values'):
            evaluate(data, fit_fn, mae_score, k=5, seed=0)
        assert calls == []

    def test_missing_response_column(self, small_data):
        fit_fn, _ = self._counting_fit_fn()
        with pytest.raises(InvalidInputError, match='Response column'):
            evaluate(small_data.drop(columns=['death_event']), fit_fn, mae_score, k=5)

    def test_non_binary_response(self, small_data):
        data = small_data.copy()
        data.loc[0, 'death_event'] = 2
        fit_fn, _ = self._counting_fit_fn()
        with pytest.raises(InvalidInputError, match='only 0 and 1'):
            evaluate(data, fit_fn, mae_score, k=5)

    def test_custom_response_column(self, small_data):
        data = small_data.rename(columns={'death_event': 'outcome'})
        score = evaluate(data, constant_fit_fn(0.9), mae_score, k=3, seed=0, response='outcome')
        assert score == pytest.approx(1 - data['outcome'].mean(), abs=0.02)

    def test_accepts_sequence_of_records(self):
        records = [{'x': float(i), 'death_event': i % 2} for i in range(10)]
        score = evaluate(records, constant_fit_fn(0.9), mae_score, k=5, seed=0)
        assert score == pytest.approx(0.5)


class TestConstantPredictor:
    """Stub model that always predicts 0.3"""

    def test_mae_matches_positive_rate(self, clinical_data):
        positive_rate = clinical_data['death_event'].mean()
        score = evaluate(clinical_data, constant_fit_fn(0.3), mae_score, k=5, seed=42)
        # 299 records give folds of 60 and 59, so the fold-mean differs slightly
        assert score == pytest.approx(positive_rate, abs=0.005)

    def test_mae_exact_with_equal_folds(self):
        data = make_raw_records(n=300, seed=5).rename(columns={'DEATH_EVENT': 'death_event'})
        score = evaluate(data, constant_fit_fn(0.3), mae_score, k=5, seed=42)
        assert score == pytest.approx(data['death_event'].mean())

    def test_f1_is_zero_and_flagged(self, clinical_data):
        validator = CrossValidator()
        with pytest.warns(DegenerateScoreWarning):
            result = validator.cross_validate(clinical_data, constant_fit_fn(0.3), f1_score,
                                              k=5, seed=42)
        assert result.mean_score == 0.0
        assert result.degenerate_folds == [0, 1, 2, 3, 4]

    def test_f1_flagged_on_thread_pool(self, clinical_data):
        validator = CrossValidator(n_workers=3)
        with pytest.warns(DegenerateScoreWarning):
            result = validator.cross_validate(clinical_data, constant_fit_fn(0.3), f1_score,
                                              k=5, seed=42)
        assert result.degenerate_folds == [0, 1, 2, 3, 4]

    def test_mae_never_flagged(self, clinical_data):
        with warnings.catch_warnings():
            warnings.simplefilter('error', DegenerateScoreWarning)
            result = CrossValidator().cross_validate(clinical_data, constant_fit_fn(0.3), mae_score,
                                                     k=5, seed=42)
        assert result.degenerate_folds == []
        assert not result.to_frame()['degenerate'].any()

    def test_undefined_f1_reports_fold(self, small_data):
        data = small_data.assign(death_event=0)
        with pytest.raises(DegenerateScoreError) as exc_info:
            evaluate(data, constant_fit_fn(0.3), f1_score, k=4, seed=0)
        assert exc_info.value.fold == 0


class TestFoldMechanics:
    """Training/validation subsets handed to the collaborators"""

    def test_validation_sets_partition_dataset(self, small_data):
        data = small_data.assign(record_id=np.arange(len(small_data)))
        seen_validation = []

        class RecordingModel:
            def predict_probability(self, records):
                seen_validation.append(records['record_id'].tolist())
                return np.full(len(records), 0.5)

        def fit_fn(train_data):
            return RecordingModel()

        evaluate(data, fit_fn, mae_score, k=6, seed=9)

        all_ids = sorted(i for fold in seen_validation for i in fold)
        assert all_ids == list(range(len(data)))
        assert len(seen_validation) == 6

    def test_training_excludes_validation(self, small_data):
        data = small_data.assign(record_id=np.arange(len(small_data)))
        folds = assign_folds(len(data), 4, seed=2)
        train_ids = []

        def fit_fn(train_data):
            train_ids.append(set(train_data['record_id']))
            return ConstantModel(0.5)

        evaluate(data, fit_fn, mae_score, k=4, seed=2)

        for fold_idx, ids in enumerate(train_ids):
            expected = set(np.where(folds != fold_idx)[0])
            assert ids == expected

    def test_response_withheld_from_predictions(self, small_data):
        class StrictModel:
            def predict_probability(self, records):
                assert 'death_event' not in records.columns
                return np.full(len(records), 0.5)

        def fit_fn(train_data):
            assert 'death_event' in train_data.columns
            return StrictModel()

        evaluate(small_data, fit_fn, mae_score, k=3, seed=0)

    def test_input_dataset_not_modified(self, small_data):
        original = small_data.copy()

        def fit_fn(train_data):
            train_data['age'] = 0.0
            return ConstantModel(0.5)

        evaluate(small_data, fit_fn, mae_score, k=3, seed=0)
        pd.testing.assert_frame_equal(small_data, original)

    def test_result_detail(self, clinical_data):
        result = CrossValidator().cross_validate(clinical_data, constant_fit_fn(0.3),
                                                 mae_score, k=5, seed=42)
        assert isinstance(result, CrossValidationResult)
        assert result.k == 5 and result.seed == 42
        assert result.fold_sizes == [60, 60, 60, 60, 59]
        assert [r.train_size for r in result.fold_results] == [239, 239, 239, 239, 240]
        assert result.mean_score == pytest.approx(np.mean(result.fold_scores))

        frame = result.to_frame()
        assert list(frame.columns) == ['fold', 'train_size', 'validation_size', 'score', 'degenerate']
        assert len(frame) == 5


class TestReproducibility:
    """Same inputs give the same answer"""

    def test_repeated_glm_evaluation(self, clinical_data):
        fit_fn = make_glm_fit_fn(REDUCED_FORMULA)
        first = evaluate(clinical_data, fit_fn, mae_score, k=5, seed=7)
        second = evaluate(clinical_data, fit_fn, mae_score, k=5, seed=7)
        assert first == second

    def test_parallel_matches_sequential(self, clinical_data):
        fit_fn = make_glm_fit_fn(REDUCED_FORMULA)
        sequential = CrossValidator().cross_validate(clinical_data, fit_fn, mae_score, k=5, seed=7)
        parallel = CrossValidator(n_workers=4).cross_validate(clinical_data, fit_fn, mae_score, k=5, seed=7)

        assert parallel.fold_scores == sequential.fold_scores
        assert parallel.mean_score == sequential.mean_score
        assert [r.fold for r in parallel.fold_results] == list(range(5))

    def test_evaluate_equals_cross_validate_mean(self, clinical_data):
        fit_fn = make_glm_fit_fn(REDUCED_FORMULA)
        validator = CrossValidator()
        assert validator.evaluate(clinical_data, fit_fn, mae_score, k=4, seed=1) == \
            validator.cross_validate(clinical_data, fit_fn, mae_score, k=4, seed=1).mean_score


class TestSeveralScorers:
    """One fit per fold shared by every scorer"""

    @pytest.mark.parametrize('n_workers', [None, 2])
    def test_each_fold_fitted_once(self, clinical_data, n_workers):
        fitted = []

        def fit_fn(train_data):
            fitted.append(len(train_data))
            return make_glm_fit_fn(REDUCED_FORMULA)(train_data)

        validator = CrossValidator(n_workers=n_workers)
        results = validator.cross_validate_scorers(
            clinical_data, fit_fn, {'f1': f1_score, 'mae': mae_score}, k=5, seed=3)

        assert len(fitted) == 5
        assert set(results) == {'f1', 'mae'}
        assert results['f1'].fold_sizes == results['mae'].fold_sizes

    def test_matches_single_scorer_runs(self, clinical_data):
        validator = CrossValidator()
        fit_fn = make_glm_fit_fn(REDUCED_FORMULA)
        results = validator.cross_validate_scorers(
            clinical_data, fit_fn, {'f1': f1_score, 'mae': mae_score}, k=5, seed=3)

        assert results['mae'].fold_scores == \
            validator.cross_validate(clinical_data, fit_fn, mae_score, k=5, seed=3).fold_scores
        assert results['f1'].mean_score == pytest.approx(
            validator.evaluate(clinical_data, fit_fn, f1_score, k=5, seed=3))

    def test_degenerate_flag_is_per_scorer(self, clinical_data):
        with pytest.warns(DegenerateScoreWarning):
            results = CrossValidator().cross_validate_scorers(
                clinical_data, constant_fit_fn(0.3), {'f1': f1_score, 'mae': mae_score}, k=5)

        assert results['f1'].degenerate_folds == [0, 1, 2, 3, 4]
        assert results['mae'].degenerate_folds == []

    def test_requires_a_scorer(self, small_data):
        with pytest.raises(InvalidInputError, match='score function'):
            CrossValidator().cross_validate_scorers(small_data, constant_fit_fn(0.3), {}, k=3)


class TestFailures:
    """A failing fold aborts the whole evaluation"""

    def _failing_when_missing(self, record_id):
        def fit_fn(train_data):
            if record_id not in set(train_data['record_id']):
                raise np.linalg.LinAlgError("Singular matrix")
            return ConstantModel(0.5)

        return fit_fn

    @pytest.mark.parametrize('n_workers', [None, 3])
    def test_fit_failure_reports_fold(self, small_data, n_workers):
        data = small_data.assign(record_id=np.arange(len(small_data)))
        expected_fold = assign_folds(len(data), 5, seed=4)[0]

        validator = CrossValidator(n_workers=n_workers)
        with pytest.raises(FitFailureError) as exc_info:
            validator.evaluate(data, self._failing_when_missing(0), mae_score, k=5, seed=4)

        error = exc_info.value
        assert error.fold == expected_fold
        assert error.stage == 'fit'
        assert isinstance(error.__cause__, np.linalg.LinAlgError)
        assert f'fold {expected_fold}' in str(error)

    def test_prediction_failure(self, small_data):
        class BrokenModel:
            def predict_probability(self, records):
                raise KeyError('serum_sodium')

        with pytest.raises(FitFailureError) as exc_info:
            evaluate(small_data, lambda train: BrokenModel(), mae_score, k=3, seed=0)

        assert exc_info.value.stage == 'predict'
        assert exc_info.value.fold == 0

    @pytest.mark.parametrize('offset', [-1, 1])
    def test_wrong_prediction_count(self, small_data, offset):
        class MiscountingModel:
            def predict_probability(self, records):
                return np.full(len(records) + offset, 0.5)

        with pytest.raises(FitFailureError) as exc_info:
            evaluate(small_data, lambda train: MiscountingModel(), mae_score, k=3, seed=0)

        error = exc_info.value
        assert error.stage == 'predict'
        assert error.fold == 0
        assert f'expected 20 probabilities, got {20 + offset}' in str(error)

    def test_out_of_range_predictions(self, small_data):
        with pytest.raises(InvalidInputError) as exc_info:
            evaluate(small_data, constant_fit_fn(1.5), mae_score, k=3, seed=0)

        assert exc_info.value.fold == 0
        assert str(exc_info.value).startswith('Fold 0: ')
        assert isinstance(exc_info.value.__cause__, InvalidInputError)

    def test_scorer_input_error_reports_fold_on_thread_pool(self, small_data):
        data = small_data.assign(record_id=np.arange(len(small_data)))
        expected_fold = assign_folds(len(data), 4, seed=0)[0]

        def fit_fn(train_data):
            return ConstantModel(0.5 if 0 in set(train_data['record_id']) else np.nan)

        with pytest.raises(InvalidInputError) as exc_info:
            CrossValidator(n_workers=2).evaluate(data, fit_fn, mae_score, k=4, seed=0)

        assert exc_info.value.fold == expected_fold

    def test_no_partial_result_after_failure(self, small_data):
        scored_folds = []

        def score_fn(y_true, y_prob):
            scored_folds.append(len(y_true))
            return mae_score(y_true, y_prob)

        calls = {'n': 0}

        def fit_fn(train_data):
            calls['n'] += 1
            if calls['n'] == 3:
                raise RuntimeError("did not converge")
            return ConstantModel(0.5)

        with pytest.raises(FitFailureError) as exc_info:
            evaluate(small_data, fit_fn, score_fn, k=5, seed=0)

        assert exc_info.value.fold == 2
        assert len(scored_folds) == 2


class TestFoldResult:
    """Result containers"""

    def test_degenerate_folds_listed(self):
        result = CrossValidationResult(k=2, seed=0, fold_results=[
            FoldResult(fold=0, train_size=5, validation_size=5, score=0.0, degenerate=True),
            FoldResult(fold=1, train_size=5, validation_size=5, score=0.5),
        ])
        assert result.degenerate_folds == [0]
        assert result.mean_score == pytest.approx(0.25)
        assert result.std_score == pytest.approx(0.25)
