"""
Support-vector classifier with probability outputs.

Predictors are taken from the right-hand side of a formula so the SVM can be
compared against the GLMs on the same terms.
"""

from typing import Optional, Union

import numpy as np
import pandas as pd
from patsy import build_design_matrices, dmatrices
from sklearn.preprocessing import StandardScaler
from sklearn.svm import SVC

from ..config.settings import AnalysisConfig
from .base import FitFunction


class SVMClassifier:
    """
    Standardized-feature SVC with Platt-scaled probabilities.
    """

    def __init__(self, formula: str = AnalysisConfig.SVM_FORMULA,
                 kernel: str = AnalysisConfig.SVM_PARAMS['kernel'],
                 C: float = AnalysisConfig.SVM_PARAMS['C'],
                 gamma: Union[str, float] = AnalysisConfig.SVM_PARAMS['gamma'],
                 random_state: Optional[int] = AnalysisConfig.RANDOM_SEED):
        self.formula = formula
        self.kernel = kernel
        self.C = C
        self.gamma = gamma
        self.random_state = random_state

        self.scaler = None
        self.model = None
        self._design_info = None

    def _design_matrix(self, records: pd.DataFrame) -> pd.DataFrame:
        (X,) = build_design_matrices([self._design_info], records, return_type='dataframe')
        return X.drop(columns=['Intercept'], errors='ignore')

    def fit(self, data: pd.DataFrame) -> 'SVMClassifier':
        """Fit scaler and SVC on ``data``."""
        y, X = dmatrices(self.formula, data, return_type='dataframe')
        self._design_info = X.design_info
        X = X.drop(columns=['Intercept'], errors='ignore')

        if X.shape[1] == 0:
            raise ValueError(f"Formula '{self.formula}' has no predictors")

        self.scaler = StandardScaler()
        X_scaled = self.scaler.fit_transform(X)

        self.model = SVC(
            kernel=self.kernel,
            C=self.C,
            gamma=self.gamma,
            probability=True,
            random_state=self.random_state,
        )
        self.model.fit(X_scaled, np.asarray(y).ravel().astype(int))

        return self

    def predict_probability(self, records: pd.DataFrame) -> np.ndarray:
        """Predicted probability of the positive class for each record."""
        if self.model is None:
            raise ValueError("Model must be fitted before prediction")

        X_scaled = self.scaler.transform(self._design_matrix(records))
        positive_col = list(self.model.classes_).index(1)
        return self.model.predict_proba(X_scaled)[:, positive_col]


def make_svm_fit_fn(formula: str = AnalysisConfig.SVM_FORMULA, **params) -> FitFunction:
    """Return a fitting function that trains a fresh ``SVMClassifier`` per call."""

    def fit_fn(train_data: pd.DataFrame) -> SVMClassifier:
        return SVMClassifier(formula, **params).fit(train_data)

    return fit_fn
