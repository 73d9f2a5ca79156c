"""
Shared Test Fixtures
Provides synthetic clinical records and simple model doubles
"""

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pandas as pd
import pytest

from heart_failure.config.settings import COLUMN_MAPPING


class ConstantModel:
    """Fitted-model double that predicts the same probability for every record."""

    def __init__(self, probability):
        self.probability = probability

    def predict_probability(self, records):
        return np.full(len(records), self.probability)


def constant_fit_fn(probability):
    """Fitting function ignoring its training data."""

    def fit_fn(train_data):
        return ConstantModel(probability)

    return fit_fn


def make_raw_records(n=299, seed=0):
    """
    Generate heart-failure-like records with the raw dataset headers.

    Death depends on age, ejection fraction and serum creatinine so the
    logistic models have some signal to find.
    """
    rng = np.random.default_rng(seed)

    age = rng.integers(40, 96, n).astype(float)
    ejection_fraction = rng.integers(14, 80, n).astype(float)
    serum_creatinine = np.round(rng.lognormal(0.2, 0.4, n), 2)
    serum_sodium = rng.integers(113, 149, n).astype(float)

    linear = (-1.0 + 0.05 * (age - 60) - 0.06 * (ejection_fraction - 38)
              + 0.8 * (serum_creatinine - 1.4))
    probability = 1 / (1 + np.exp(-linear))

    return pd.DataFrame({
        'age': age,
        'anaemia': rng.integers(0, 2, n),
        'creatinine_phosphokinase': rng.integers(23, 7861, n),
        'diabetes': rng.integers(0, 2, n),
        'ejection_fraction': ejection_fraction,
        'high_blood_pressure': rng.integers(0, 2, n),
        'platelets': np.round(rng.normal(263000, 97000, n).clip(25000, 850000)),
        'serum_creatinine': serum_creatinine,
        'serum_sodium': serum_sodium,
        'sex': rng.integers(0, 2, n),
        'smoking': rng.integers(0, 2, n),
        'time': rng.integers(4, 286, n),
        'DEATH_EVENT': (rng.random(n) < probability).astype(int),
    })


@pytest.fixture
def raw_records():
    """299 raw records, as in the published dataset."""
    return make_raw_records()


@pytest.fixture
def clinical_data(raw_records):
    """Records renamed to project column names."""
    return raw_records.rename(columns=COLUMN_MAPPING)


@pytest.fixture
def small_data(clinical_data):
    """First 60 records, enough for quick model fits."""
    return clinical_data.iloc[:60].reset_index(drop=True)


@pytest.fixture
def data_csv(raw_records, tmp_path):
    """Raw records written to a CSV file."""
    path = tmp_path / 'heart_failure_clinical_records_dataset.csv'
    raw_records.to_csv(path, index=False)
    return path
