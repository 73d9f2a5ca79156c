"""
Logistic regression models fitted as binomial GLMs.

Models are specified with R-style formulas (``death_event ~ age + ...``) and
fitted with statsmodels, which keeps deviance, log-likelihood and AIC
available for model comparison.
"""

from typing import Dict, Optional

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf

from ..config.settings import AnalysisConfig
from .base import FitFunction


class LogisticGLM:
    """
    Binomial GLM with logit link, specified by a formula.

    ``fit`` returns the instance itself so it can be used directly as a
    fitted model by the cross-validator.
    """

    def __init__(self, formula: str, max_iter: int = AnalysisConfig.GLM_MAX_ITER):
        """
        Initialize the model.

        Args:
            formula: Patsy formula with the response on the left-hand side
            max_iter: Maximum number of IRLS iterations
        """
        self.formula = formula
        self.max_iter = max_iter
        self.result = None

    @property
    def is_fitted(self) -> bool:
        return self.result is not None

    def fit(self, data: pd.DataFrame) -> 'LogisticGLM':
        """
        Fit the GLM on ``data``.

        Raises:
            RuntimeError: If IRLS does not converge
        """
        model = smf.glm(self.formula, data=data, family=sm.families.Binomial())
        result = model.fit(maxiter=self.max_iter)

        if not getattr(result, 'converged', True):
            raise RuntimeError(
                f"GLM '{self.formula}' did not converge in {self.max_iter} iterations"
            )

        self.result = result
        return self

    def _check_fitted(self):
        if self.result is None:
            raise ValueError("Model must be fitted before use")

    def predict_probability(self, records: pd.DataFrame) -> np.ndarray:
        """Predicted probability of the positive class for each record."""
        self._check_fitted()
        probs = np.asarray(self.result.predict(records), dtype=float).ravel()

        # Intercept-only formulas produce a single row whatever the input length
        if len(probs) == 1 and len(records) != 1:
            probs = np.repeat(probs, len(records))

        return probs

    @property
    def aic(self) -> float:
        self._check_fitted()
        return float(self.result.aic)

    @property
    def deviance(self) -> float:
        self._check_fitted()
        return float(self.result.deviance)

    @property
    def llf(self) -> float:
        self._check_fitted()
        return float(self.result.llf)

    @property
    def df_model(self) -> int:
        self._check_fitted()
        return int(round(self.result.df_model))

    @property
    def n_obs(self) -> int:
        self._check_fitted()
        return int(self.result.nobs)

    def coefficients(self, alpha: float = AnalysisConfig.ALPHA) -> pd.DataFrame:
        """
        Coefficient table with odds ratios and confidence intervals.

        Args:
            alpha: Significance level for the confidence intervals

        Returns:
            DataFrame indexed by term
        """
        self._check_fitted()
        conf_int = self.result.conf_int(alpha=alpha)

        table = pd.DataFrame({
            'coef': self.result.params,
            'std_err': self.result.bse,
            'z': self.result.tvalues,
            'p_value': self.result.pvalues,
            'odds_ratio': np.exp(self.result.params),
            'or_ci_lower': np.exp(conf_int[0]),
            'or_ci_upper': np.exp(conf_int[1]),
        })
        table['significant'] = table['p_value'] < alpha

        return table


def make_glm_fit_fn(formula: str, max_iter: int = AnalysisConfig.GLM_MAX_ITER) -> FitFunction:
    """Return a fitting function that trains a fresh ``LogisticGLM`` per call."""

    def fit_fn(train_data: pd.DataFrame) -> LogisticGLM:
        return LogisticGLM(formula, max_iter=max_iter).fit(train_data)

    return fit_fn


def fit_glm_models(data: pd.DataFrame, formulas: Optional[Dict[str, str]] = None,
                   verbose: bool = True) -> Dict[str, LogisticGLM]:
    """
    Fit several logistic GLMs on the same data.

    Args:
        data: DataFrame with the response and predictors
        formulas: Mapping of model name to formula. If None, uses AnalysisConfig.GLM_FORMULAS.
        verbose: Whether to print fitting progress

    Returns:
        Dictionary of fitted models by name
    """
    formulas = formulas or AnalysisConfig.GLM_FORMULAS
    models = {}

    for name, formula in formulas.items():
        if verbose:
            print(f"🔵 Fitting {name} logistic model...")

        models[name] = LogisticGLM(formula).fit(data)

        if verbose:
            print(f"✅ {name}: AIC={models[name].aic:.2f}, deviance={models[name].deviance:.2f}")

    return models
