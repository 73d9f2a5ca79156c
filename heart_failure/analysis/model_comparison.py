"""
Model comparison for the heart failure outcome models.

Three complementary views:
1. Likelihood ratio (analysis of deviance) tests between nested GLMs
2. AIC ranking of all fitted GLMs
3. Cross-validated F1 and MAE for GLMs and the SVM, plus a final hold-out check
"""

import warnings
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from scipy.stats import chi2

from ..config.settings import AnalysisConfig
from ..models.base import FitFunction
from ..models.glm_models import LogisticGLM, fit_glm_models, make_glm_fit_fn
from ..models.svm_models import make_svm_fit_fn
from ..utils.scoring import SCORERS
from .cross_validation import CrossValidator, ScoreFunction


def likelihood_ratio_test(model_reduced: LogisticGLM, model_full: LogisticGLM,
                          alpha: float = AnalysisConfig.ALPHA,
                          verbose: bool = True) -> Dict[str, Any]:
    """
    Perform likelihood ratio test between nested GLMs.

    The statistic is the drop in deviance, ``2 * (llf_full - llf_reduced)``,
    compared against a chi-square distribution with the difference in model
    degrees of freedom.

    Args:
        model_reduced: Null (simpler) model
        model_full: Alternative (more complex) model
        alpha: Significance level
        verbose: Whether to print the test result

    Returns:
        Dictionary with LRT statistics
    """
    df_diff = model_full.df_model - model_reduced.df_model

    if df_diff <= 0 or model_full.n_obs != model_reduced.n_obs:
        warnings.warn("Models not properly nested for LRT")
        return {'valid': False}

    lr_stat = max(2 * (model_full.llf - model_reduced.llf), 0.0)
    p_value = float(chi2.sf(lr_stat, df_diff))

    result = {
        'lr_statistic': lr_stat,
        'df': df_diff,
        'p_value': p_value,
        'significant': p_value < alpha,
        'deviance_reduced': model_reduced.deviance,
        'deviance_full': model_full.deviance,
        'valid': True
    }

    if verbose:
        print("📊 Likelihood Ratio Test:")
        print(f"   {model_reduced.formula}  vs  {model_full.formula}")
        print(f"   LR statistic: {lr_stat:.3f}")
        print(f"   df: {df_diff}")
        print(f"   p-value: {p_value:.4f}")
        print(f"   Significant: {result['significant']}")

    return result


def aic_table(models: Dict[str, LogisticGLM]) -> pd.DataFrame:
    """
    Rank fitted GLMs by AIC.

    Args:
        models: Fitted models by name

    Returns:
        DataFrame sorted by AIC (best first) with a delta-AIC column
    """
    rows = [{
        'model': name,
        'formula': model.formula,
        'aic': model.aic,
        'deviance': model.deviance,
        'log_likelihood': model.llf,
        'df_model': model.df_model,
    } for name, model in models.items()]

    table = pd.DataFrame(rows).sort_values('aic').reset_index(drop=True)
    table['delta_aic'] = table['aic'] - table['aic'].min()
    return table


def compare_cross_validated(dataset: pd.DataFrame,
                            candidates: Dict[str, FitFunction],
                            scorers: Optional[Dict[str, ScoreFunction]] = None,
                            k: int = AnalysisConfig.CV_FOLDS,
                            seed: int = AnalysisConfig.RANDOM_SEED,
                            n_workers: Optional[int] = None,
                            verbose: bool = True) -> pd.DataFrame:
    """
    Cross-validate every candidate with every scorer on the same folds.

    Each candidate is fitted once per fold; all scorers share its predictions.

    Args:
        dataset: Complete dataset including the response column
        candidates: Fitting functions by model name
        scorers: Scoring functions by name. If None, uses F1 and MAE.
        k: Number of folds
        seed: Random seed for fold assignment
        n_workers: Thread pool size for fold evaluation
        verbose: Whether to print progress

    Returns:
        DataFrame with ``{scorer}_mean``/``{scorer}_std`` columns per model
    """
    scorers = scorers or SCORERS
    validator = CrossValidator(n_workers=n_workers, verbose=False)
    rows = []

    for name, fit_fn in candidates.items():
        if verbose:
            print(f"\n  🔹 Cross-validating {name}...")

        row = {'model': name}
        degenerate = set()

        results = validator.cross_validate_scorers(dataset, fit_fn, scorers, k=k, seed=seed)
        for score_name, result in results.items():
            row[f'{score_name}_mean'] = result.mean_score
            row[f'{score_name}_std'] = result.std_score
            degenerate.update(result.degenerate_folds)

            if verbose:
                print(f"    {score_name.upper()} (CV): {result.mean_score:.3f} ± {result.std_score:.3f}")

        row['degenerate_folds'] = len(degenerate)
        rows.append(row)

    return pd.DataFrame(rows)


def holdout_scores(train_data: pd.DataFrame, test_data: pd.DataFrame,
                   candidates: Dict[str, FitFunction],
                   scorers: Optional[Dict[str, ScoreFunction]] = None,
                   response: str = AnalysisConfig.RESPONSE) -> pd.DataFrame:
    """
    Fit each candidate once on ``train_data`` and score it on ``test_data``.

    Returns:
        DataFrame with one column per scorer
    """
    scorers = scorers or SCORERS
    y_test = test_data[response].to_numpy(dtype=int)
    features = test_data.drop(columns=[response])
    rows = []

    for name, fit_fn in candidates.items():
        model = fit_fn(train_data)
        y_pred_prob = np.asarray(model.predict_probability(features), dtype=float)
        row = {'model': name}
        for score_name, score_fn in scorers.items():
            row[score_name] = score_fn(y_test, y_pred_prob)
        rows.append(row)

    return pd.DataFrame(rows)


def build_candidates(formulas: Optional[Dict[str, str]] = None,
                     svm_formula: str = AnalysisConfig.SVM_FORMULA,
                     include_svm: bool = True) -> Dict[str, FitFunction]:
    """Fitting functions for every configured GLM formula and the SVM."""
    formulas = formulas or AnalysisConfig.GLM_FORMULAS
    candidates = {f'glm_{name}': make_glm_fit_fn(formula) for name, formula in formulas.items()}

    if include_svm:
        candidates['svm'] = make_svm_fit_fn(svm_formula, **AnalysisConfig.SVM_PARAMS)

    return candidates


def run_model_comparison(data: pd.DataFrame,
                         formulas: Optional[Dict[str, str]] = None,
                         full_model: str = 'full',
                         svm_formula: str = AnalysisConfig.SVM_FORMULA,
                         k: int = AnalysisConfig.CV_FOLDS,
                         seed: int = AnalysisConfig.RANDOM_SEED,
                         n_workers: Optional[int] = None,
                         verbose: bool = True) -> Dict[str, Any]:
    """
    Run complete model comparison pipeline.

    Args:
        data: Preprocessed dataset
        formulas: GLM formulas by name. If None, uses AnalysisConfig.GLM_FORMULAS.
        full_model: Name of the largest formula; every other GLM is tested against it
        svm_formula: Formula whose right-hand side gives the SVM predictors
        k: Number of cross-validation folds
        seed: Random seed for fold assignment
        n_workers: Thread pool size for fold evaluation
        verbose: Whether to print detailed progress

    Returns:
        Dictionary with fitted models, AIC table, LRT results, coefficient
        table of the full model and the cross-validation comparison
    """
    formulas = formulas or AnalysisConfig.GLM_FORMULAS

    if full_model not in formulas:
        raise ValueError(f"Full model '{full_model}' not among formulas: {list(formulas)}")

    if verbose:
        print("🤖 Running model comparison pipeline...")

    # Step 1: Fit GLMs on the full dataset
    models = fit_glm_models(data, formulas, verbose=verbose)

    # Step 2: Information criteria
    aic_df = aic_table(models)
    if verbose:
        print("\n📊 AIC ranking:")
        print(aic_df[['model', 'aic', 'delta_aic', 'deviance']].to_string(index=False))

    # Step 3: Nested model tests against the full model
    lrt_results = {}
    for name, model in models.items():
        if name == full_model:
            continue
        lrt_results[name] = likelihood_ratio_test(model, models[full_model], verbose=verbose)

    # Step 4: Cross-validated scores
    if verbose:
        print(f"\n🔄 {k}-fold cross-validation (seed={seed})...")

    candidates = build_candidates(formulas, svm_formula)
    cv_df = compare_cross_validated(data, candidates, k=k, seed=seed,
                                    n_workers=n_workers, verbose=verbose)

    if verbose:
        best = cv_df.loc[cv_df['f1_mean'].idxmax(), 'model']
        print(f"\n✅ Best model by CV F1: {best}")

    return {
        'models': models,
        'aic_table': aic_df,
        'lrt_results': lrt_results,
        'coefficients': models[full_model].coefficients(),
        'cv_comparison': cv_df,
    }
