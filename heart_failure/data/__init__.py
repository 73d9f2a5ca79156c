"""
Data module for heart failure analysis.

This module provides data loading, validation, and hold-out splitting
for the heart failure clinical records dataset.
"""

from .loader import HeartFailureDataLoader

__all__ = ['HeartFailureDataLoader']
