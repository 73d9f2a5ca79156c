"""
Heart Failure Analysis Project
==============================

Outcome modelling for the heart failure clinical records dataset: logistic
GLMs and a support-vector classifier predicting death during follow-up,
compared by likelihood ratio tests, AIC and K-fold cross-validated scores.

Structure:
- data/: Data loading and validation
- models/: Logistic GLMs (statsmodels) and SVM (scikit-learn)
- analysis/: Cross-validation harness and model comparison
- utils/: Scoring functions, statistics, visualization
- config/: Configuration files and constants
"""

from .exceptions import (
    DegenerateScoreError, DegenerateScoreWarning, FitFailureError, InvalidInputError,
)

__version__ = "1.0.0"
__author__ = "Heart Failure Analysis Team"
