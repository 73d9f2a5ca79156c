"""
Data loading and preprocessing module for heart failure analysis.
"""

import pandas as pd
import numpy as np
from pathlib import Path
from typing import Optional, Tuple, Dict, Any
from sklearn.model_selection import train_test_split

from ..config.settings import DATA_FILE, COLUMN_MAPPING, AnalysisConfig
from ..exceptions import InvalidInputError


class HeartFailureDataLoader:
    """
    Data loader and preprocessor for heart failure clinical records.

    This class handles loading the tabular data, renaming and type conversion,
    and the completeness checks the modelling code relies on.
    """

    def __init__(self, data_file: Optional[Path] = None, verbose: bool = True):
        """
        Initialize the data loader.

        Args:
            data_file: Path to the data file. If None, uses default from config.
            verbose: Whether to print loading progress
        """
        self.data_file = Path(data_file) if data_file else DATA_FILE
        self.verbose = verbose
        self.raw_data = None
        self.processed_data = None

    def load_data(self) -> pd.DataFrame:
        """
        Load raw data from a CSV or Excel file.

        Returns:
            DataFrame with raw data
        """
        if not self.data_file.exists():
            raise FileNotFoundError(f"Data file not found: {self.data_file}")

        if self.data_file.suffix.lower() in ('.xlsx', '.xls'):
            self.raw_data = pd.read_excel(self.data_file)
        else:
            self.raw_data = pd.read_csv(self.data_file)

        if self.verbose:
            print(f"Loaded data with shape: {self.raw_data.shape}")
        return self.raw_data

    def preprocess_data(self) -> pd.DataFrame:
        """
        Clean and validate the raw data.

        Returns:
            DataFrame with preprocessed data
        """
        if self.raw_data is None:
            self.load_data()

        df = self.raw_data.copy()

        # Rename columns to project names
        df = df.rename(columns=COLUMN_MAPPING)

        df = self._convert_data_types(df)
        self._validate_completeness(df)
        self._validate_binary_columns(df)

        self.processed_data = df
        if self.verbose:
            print(f"Processed data shape: {df.shape}")

        return df

    def _convert_data_types(self, df: pd.DataFrame) -> pd.DataFrame:
        """Convert data types appropriately."""

        float_cols = AnalysisConfig.CONTINUOUS_PREDICTORS + ['time']
        for col in float_cols:
            if col in df.columns:
                df[col] = pd.to_numeric(df[col], errors='coerce')

        # Indicators and the response stay as plain ints so formulas treat them as numeric
        int_cols = AnalysisConfig.BINARY_PREDICTORS + [AnalysisConfig.RESPONSE]
        for col in int_cols:
            if col in df.columns:
                df[col] = pd.to_numeric(df[col], errors='coerce')
                if df[col].notna().all():
                    df[col] = df[col].astype(int)

        return df

    def _validate_completeness(self, df: pd.DataFrame):
        """Reject datasets with missing values."""
        if AnalysisConfig.RESPONSE not in df.columns:
            raise InvalidInputError(f"Response column '{AnalysisConfig.RESPONSE}' not found")

        missing_stats = df.isnull().sum()
        if missing_stats.sum() > 0:
            missing = missing_stats[missing_stats > 0].to_dict()
            raise InvalidInputError(f"Missing values found: {missing}")

    def _validate_binary_columns(self, df: pd.DataFrame):
        """Check that indicators and the response are coded 0/1."""
        for col in AnalysisConfig.BINARY_PREDICTORS + [AnalysisConfig.RESPONSE]:
            if col in df.columns and not df[col].isin([0, 1]).all():
                raise InvalidInputError(f"Column '{col}' must contain only 0 and 1")

    def get_predictors(self, include_excluded: bool = False) -> list:
        """Predictor columns present in the processed data."""
        if self.processed_data is None:
            self.preprocess_data()

        excluded = {AnalysisConfig.RESPONSE}
        if not include_excluded:
            excluded.update(AnalysisConfig.EXCLUDED_PREDICTORS)

        return [c for c in self.processed_data.columns if c not in excluded]

    def split_holdout(self, test_size: float = AnalysisConfig.HOLDOUT_FRACTION,
                      seed: int = AnalysisConfig.RANDOM_SEED) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """
        Stratified train/test split for a final held-out evaluation.

        Returns:
            Tuple of (train_data, test_data)
        """
        if self.processed_data is None:
            self.preprocess_data()

        df = self.processed_data
        train_data, test_data = train_test_split(
            df, test_size=test_size, random_state=seed,
            stratify=df[AnalysisConfig.RESPONSE]
        )

        if self.verbose:
            print(f"Train samples: {len(train_data)}")
            print(f"Test samples: {len(test_data)}")

        return train_data.copy(), test_data.copy()

    def get_summary_statistics(self) -> Dict[str, Any]:
        """
        Get summary statistics of the processed data.

        Returns:
            Dictionary with summary statistics
        """
        if self.processed_data is None:
            self.preprocess_data()

        df = self.processed_data
        response = df[AnalysisConfig.RESPONSE]

        summary = {
            'total_samples': len(df),
            'n_predictors': len(self.get_predictors()),
            'positive_cases': int(response.sum()),
            'positive_rate': float(response.mean()),
            'binary_prevalence': {
                col: float(df[col].mean())
                for col in AnalysisConfig.BINARY_PREDICTORS if col in df.columns
            },
            'continuous_ranges': {
                col: {
                    'min': df[col].min(),
                    'max': df[col].max(),
                    'mean': df[col].mean(),
                    'median': float(np.median(df[col])),
                }
                for col in AnalysisConfig.CONTINUOUS_PREDICTORS if col in df.columns
            },
        }

        return summary
