"""
Capability interface shared by every model family.
"""

from typing import Callable, Protocol, runtime_checkable

import numpy as np
import pandas as pd


@runtime_checkable
class ProbabilityModel(Protocol):
    """A fitted model that predicts the probability of the positive class."""

    def predict_probability(self, records: pd.DataFrame) -> np.ndarray:
        """Return one probability in [0, 1] per row of ``records``."""
        ...


# Takes a training subset (response column included) and returns a fitted model
FitFunction = Callable[[pd.DataFrame], ProbabilityModel]
