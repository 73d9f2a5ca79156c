"""
Statistical utilities for heart failure analysis.
"""

import numpy as np
import pandas as pd
from scipy import stats
from typing import Dict, Any, Optional, List

from ..config.settings import AnalysisConfig


class StatisticalAnalyzer:
    """
    Statistical analysis utilities for heart failure data.

    Provides descriptive comparisons between outcome groups, correlation
    with the response, and normality checks used during exploration.
    """

    def __init__(self, alpha: float = AnalysisConfig.ALPHA):
        """
        Initialize the statistical analyzer.

        Args:
            alpha: Significance level for hypothesis tests
        """
        self.alpha = alpha

    def outcome_correlations(self, data: pd.DataFrame,
                             response: str = AnalysisConfig.RESPONSE,
                             features: Optional[List[str]] = None) -> pd.DataFrame:
        """
        Point-biserial correlation of each predictor with the 0/1 response.

        Args:
            data: DataFrame containing the data
            response: Binary response column
            features: Predictors to correlate. If None, uses the configured
                continuous and binary predictors present in ``data``.

        Returns:
            DataFrame with correlation, p-value and significance per predictor,
            strongest association first
        """
        if features is None:
            features = AnalysisConfig.CONTINUOUS_PREDICTORS + AnalysisConfig.BINARY_PREDICTORS

        rows = []
        for feature in features:
            if feature not in data.columns or feature == response:
                continue

            clean_data = data[[response, feature]].dropna()
            # Constant columns have no defined correlation
            if len(clean_data) < 3 or clean_data[feature].nunique() < 2:
                continue

            corr, p_value = stats.pointbiserialr(clean_data[response], clean_data[feature])
            rows.append({
                'predictor': feature,
                'correlation': corr,
                'p_value': p_value,
                'significant': p_value < self.alpha,
            })

        table = pd.DataFrame(rows, columns=['predictor', 'correlation', 'p_value', 'significant'])
        order = table['correlation'].abs().sort_values(ascending=False).index
        return table.loc[order].reset_index(drop=True)

    def t_test(self, group1: pd.Series, group2: pd.Series) -> Dict[str, Any]:
        """
        Independent two-sample t-test with a Mann-Whitney U check.

        Levene's test decides whether equal variances are assumed.

        Args:
            group1: First group data
            group2: Second group data

        Returns:
            Dictionary with test results
        """
        g1, g2 = group1.dropna(), group2.dropna()

        _, levene_p = stats.levene(g1, g2)
        equal_var = levene_p > self.alpha

        t_stat, p_value = stats.ttest_ind(g1, g2, equal_var=equal_var)
        u_stat, u_p_value = stats.mannwhitneyu(g1, g2, alternative='two-sided')

        return {
            't_statistic': t_stat,
            'p_value': p_value,
            'significant': p_value < self.alpha,
            'equal_var': equal_var,
            'mannwhitney_u': u_stat,
            'mannwhitney_p_value': u_p_value,
            'group1_stats': {
                'count': len(g1),
                'mean': np.mean(g1),
                'std': np.std(g1, ddof=1),
                'median': np.median(g1)
            },
            'group2_stats': {
                'count': len(g2),
                'mean': np.mean(g2),
                'std': np.std(g2, ddof=1),
                'median': np.median(g2)
            },
        }

    def chi_square_test(self, data: pd.DataFrame, var1: str,
                        var2: str) -> Dict[str, Any]:
        """
        Perform chi-square test of independence.

        Args:
            data: DataFrame containing the data
            var1: First categorical variable
            var2: Second categorical variable

        Returns:
            Dictionary with chi-square test results
        """
        contingency_table = pd.crosstab(data[var1], data[var2])

        chi2_stat, p_value, dof, expected = stats.chi2_contingency(contingency_table)

        return {
            'chi2_statistic': chi2_stat,
            'p_value': p_value,
            'degrees_of_freedom': dof,
            'significant': p_value < self.alpha,
            'contingency_table': contingency_table,
            'expected_frequencies': expected,
            'cramer_v': self._calculate_cramers_v(chi2_stat, contingency_table)
        }

    def _calculate_cramers_v(self, chi2: float, contingency_table: pd.DataFrame) -> float:
        """Calculate Cramer's V effect size measure."""
        n = contingency_table.sum().sum()
        min_dim = min(contingency_table.shape) - 1
        if min_dim == 0:
            return 0.0
        return np.sqrt(chi2 / (n * min_dim))

    def normality_test(self, values: pd.Series) -> Dict[str, Any]:
        """
        Shapiro-Wilk check of one outcome group.

        Too few or constant values count as not normal, which sends the
        comparison to the rank test.

        Args:
            values: Predictor values for one group

        Returns:
            Dictionary with W statistic, p-value, skewness and ``is_normal``
        """
        clean_data = values.dropna()
        n = len(clean_data)

        if n < 3 or clean_data.nunique() < 2:
            return {'sample_size': n, 'statistic': np.nan, 'p_value': np.nan,
                    'skewness': np.nan, 'is_normal': False}

        stat, p_value = stats.shapiro(clean_data)

        return {
            'sample_size': n,
            'statistic': stat,
            'p_value': p_value,
            'skewness': stats.skew(clean_data),
            'is_normal': p_value > self.alpha,
        }

    def compare_by_outcome(self, data: pd.DataFrame,
                           response: str = AnalysisConfig.RESPONSE,
                           continuous: Optional[List[str]] = None,
                           binary: Optional[List[str]] = None) -> pd.DataFrame:
        """
        Compare every predictor between deaths and survivors.

        A continuous predictor is reported with the t-test (group means)
        when both outcome groups pass the normality check, otherwise with
        Mann-Whitney U (group medians). Binary predictors get a chi-square
        test against the response.

        Args:
            data: DataFrame containing the data
            response: Binary response column
            continuous: Continuous predictors. If None, uses AnalysisConfig.CONTINUOUS_PREDICTORS.
            binary: Binary predictors. If None, uses AnalysisConfig.BINARY_PREDICTORS.

        Returns:
            DataFrame with one row per predictor, sorted by p-value
        """
        continuous = continuous if continuous is not None else AnalysisConfig.CONTINUOUS_PREDICTORS
        binary = binary if binary is not None else AnalysisConfig.BINARY_PREDICTORS

        positive = data[data[response] == 1]
        negative = data[data[response] == 0]
        rows = []

        for col in continuous:
            if col not in data.columns:
                continue

            normal = (self.normality_test(positive[col])['is_normal']
                      and self.normality_test(negative[col])['is_normal'])
            result = self.t_test(positive[col], negative[col])

            if normal:
                row = {'test': 't-test', 'statistic': result['t_statistic'],
                       'p_value': result['p_value'],
                       'positive_summary': result['group1_stats']['mean'],
                       'negative_summary': result['group2_stats']['mean']}
            else:
                row = {'test': 'mann-whitney', 'statistic': result['mannwhitney_u'],
                       'p_value': result['mannwhitney_p_value'],
                       'positive_summary': result['group1_stats']['median'],
                       'negative_summary': result['group2_stats']['median']}

            row.update({'predictor': col, 'normal': normal,
                        'significant': row['p_value'] < self.alpha})
            rows.append(row)

        for col in binary:
            if col not in data.columns:
                continue
            result = self.chi_square_test(data, col, response)
            rows.append({
                'predictor': col,
                'test': 'chi-square',
                'statistic': result['chi2_statistic'],
                'p_value': result['p_value'],
                'positive_summary': positive[col].mean(),
                'negative_summary': negative[col].mean(),
                'normal': np.nan,
                'significant': result['significant'],
            })

        columns = ['predictor', 'test', 'statistic', 'p_value', 'positive_summary',
                   'negative_summary', 'normal', 'significant']
        return pd.DataFrame(rows, columns=columns).sort_values('p_value').reset_index(drop=True)
