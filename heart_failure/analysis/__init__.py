"""
Analysis module: cross-validation harness and model comparison.
"""

from .cross_validation import *
from .model_comparison import *

__all__ = [
    # Cross-validation
    'assign_folds',
    'evaluate',
    'CrossValidator',
    'CrossValidationResult',
    'FoldResult',

    # Model comparison
    'likelihood_ratio_test',
    'aic_table',
    'compare_cross_validated',
    'holdout_scores',
    'build_candidates',
    'run_model_comparison',
]
