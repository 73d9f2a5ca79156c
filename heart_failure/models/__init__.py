"""
Models module for heart failure analysis.
Contains the logistic GLMs and the support-vector classifier.
"""

from .base import *
from .glm_models import *
from .svm_models import *

__all__ = [
    # Capability interface
    'ProbabilityModel',
    'FitFunction',

    # Logistic GLMs
    'LogisticGLM',
    'make_glm_fit_fn',
    'fit_glm_models',

    # SVM
    'SVMClassifier',
    'make_svm_fit_fn',
]
