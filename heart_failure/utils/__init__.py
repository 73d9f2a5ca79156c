"""
Utilities module for heart failure analysis.

This module provides the scoring functions, statistical tests and
visualization helpers used by the analysis modules.
"""

from .scoring import (
    ConfusionCounts, SCORERS, confusion_counts, f1_score, mae_score,
    threshold_probabilities,
)
from .visualization import HeartFailureVisualizer
from .statistics import StatisticalAnalyzer

__all__ = [
    'ConfusionCounts',
    'SCORERS',
    'confusion_counts',
    'f1_score',
    'mae_score',
    'threshold_probabilities',
    'HeartFailureVisualizer',
    'StatisticalAnalyzer',
]
