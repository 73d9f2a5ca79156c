"""
Visualization utilities for heart failure analysis.
"""

import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd
import numpy as np
from typing import Optional, List, Tuple
from pathlib import Path

from ..config.settings import FIGURES_DIR, AnalysisConfig

# Set style for consistent plots
plt.style.use('default')
sns.set_palette("husl")


class HeartFailureVisualizer:
    """
    Visualization utilities for heart failure analysis.

    Provides exploration plots split by outcome and charts comparing
    cross-validated model scores.
    """

    def __init__(self, save_dir: Optional[Path] = None, figsize: Tuple[int, int] = (10, 6)):
        """
        Initialize the visualizer.

        Args:
            save_dir: Directory to save figures. If None, uses default from config.
            figsize: Default figure size for plots.
        """
        self.save_dir = Path(save_dir) if save_dir else FIGURES_DIR
        self.figsize = figsize

    def correlation_heatmap(self, data: pd.DataFrame, columns: Optional[List[str]] = None,
                            title: str = "Correlation Matrix", save_name: Optional[str] = None) -> plt.Figure:
        """
        Create a correlation heatmap.

        Args:
            data: DataFrame containing the data
            columns: List of columns to include. If None, uses all numeric columns.
            title: Plot title
            save_name: Filename to save the plot

        Returns:
            matplotlib Figure object
        """
        if columns is None:
            numeric_data = data.select_dtypes(include=[np.number])
        else:
            numeric_data = data[columns]

        correlation = numeric_data.corr()

        fig, ax = plt.subplots(figsize=(12, 10))

        sns.heatmap(correlation, annot=True, cmap='coolwarm', center=0,
                    square=True, ax=ax, fmt='.2f')

        ax.set_title(title, fontsize=14, fontweight='bold')

        plt.tight_layout()

        if save_name:
            self._save_figure(fig, save_name)

        return fig

    def distribution_plot(self, data: pd.DataFrame, column: str,
                          by_group: Optional[str] = AnalysisConfig.RESPONSE,
                          title: Optional[str] = None,
                          save_name: Optional[str] = None) -> plt.Figure:
        """
        Create a distribution plot (histogram + KDE), split by outcome by default.

        Args:
            data: DataFrame containing the data
            column: Column name to plot distribution for
            by_group: Column name to group by. None plots a single distribution.
            title: Plot title
            save_name: Filename to save the plot

        Returns:
            matplotlib Figure object
        """
        fig, ax = plt.subplots(figsize=self.figsize)

        if by_group:
            for group in sorted(data[by_group].dropna().unique()):
                subset = data[data[by_group] == group][column].dropna()
                sns.histplot(subset, kde=True, alpha=0.6, label=f"{by_group}={group}", ax=ax)
            ax.legend()
        else:
            sns.histplot(data[column].dropna(), kde=True, ax=ax)

        if title:
            ax.set_title(title, fontsize=14, fontweight='bold')
        else:
            ax.set_title(f'Distribution of {column.replace("_", " ").title()}',
                         fontsize=14, fontweight='bold')

        ax.set_xlabel(column.replace('_', ' ').title(), fontsize=12)
        ax.set_ylabel('Frequency', fontsize=12)

        plt.tight_layout()

        if save_name:
            self._save_figure(fig, save_name)

        return fig

    def box_plot(self, data: pd.DataFrame, y: str, x: str = AnalysisConfig.RESPONSE,
                 title: Optional[str] = None, save_name: Optional[str] = None) -> plt.Figure:
        """
        Create a box plot of a continuous predictor by outcome.

        Args:
            data: DataFrame containing the data
            y: Column name for y-axis (numerical)
            x: Column name for x-axis (categorical)
            title: Plot title
            save_name: Filename to save the plot

        Returns:
            matplotlib Figure object
        """
        fig, ax = plt.subplots(figsize=self.figsize)

        sns.boxplot(data=data, x=x, y=y, ax=ax)

        if title:
            ax.set_title(title, fontsize=14, fontweight='bold')

        ax.set_xlabel(x.replace('_', ' ').title(), fontsize=12)
        ax.set_ylabel(y.replace('_', ' ').title(), fontsize=12)

        plt.tight_layout()

        if save_name:
            self._save_figure(fig, save_name)

        return fig

    def outcome_rate_plot(self, data: pd.DataFrame, columns: List[str],
                          response: str = AnalysisConfig.RESPONSE,
                          title: str = "Outcome Rate by Indicator",
                          save_name: Optional[str] = None) -> plt.Figure:
        """
        Bar chart of the positive outcome rate for each level of binary indicators.

        Args:
            data: DataFrame containing the data
            columns: Binary indicator columns
            response: Binary response column
            title: Plot title
            save_name: Filename to save the plot

        Returns:
            matplotlib Figure object
        """
        rates = []
        for col in columns:
            grouped = data.groupby(col)[response].mean()
            for level, rate in grouped.items():
                rates.append({'indicator': col, 'level': str(level), 'rate': rate})
        rates_df = pd.DataFrame(rates)

        fig, ax = plt.subplots(figsize=self.figsize)

        sns.barplot(data=rates_df, x='indicator', y='rate', hue='level', ax=ax)

        ax.set_title(title, fontsize=14, fontweight='bold')
        ax.set_xlabel('Indicator', fontsize=12)
        ax.set_ylabel(f'{response.replace("_", " ").title()} Rate', fontsize=12)

        plt.xticks(rotation=45, ha='right')
        plt.tight_layout()

        if save_name:
            self._save_figure(fig, save_name)

        return fig

    def cv_score_plot(self, comparison: pd.DataFrame, score: str = 'f1',
                      title: Optional[str] = None, save_name: Optional[str] = None) -> plt.Figure:
        """
        Bar chart of cross-validated scores with one standard deviation error bars.

        Args:
            comparison: Output of ``compare_cross_validated`` (columns ``model``,
                ``{score}_mean`` and ``{score}_std``)
            score: Scorer name to plot
            title: Plot title
            save_name: Filename to save the plot

        Returns:
            matplotlib Figure object
        """
        fig, ax = plt.subplots(figsize=self.figsize)

        ax.bar(comparison['model'], comparison[f'{score}_mean'],
               yerr=comparison[f'{score}_std'], capsize=5, alpha=0.8)

        ax.set_title(title or f'Cross-validated {score.upper()} by Model',
                     fontsize=14, fontweight='bold')
        ax.set_xlabel('Model', fontsize=12)
        ax.set_ylabel(score.upper(), fontsize=12)
        ax.set_ylim(0, 1)

        plt.xticks(rotation=45, ha='right')
        plt.tight_layout()

        if save_name:
            self._save_figure(fig, save_name)

        return fig

    def _save_figure(self, fig: plt.Figure, filename: str, dpi: int = 300):
        """
        Save figure to file.

        Args:
            fig: matplotlib Figure object
            filename: Name of the file (without extension)
            dpi: Resolution for saved figure
        """
        self.save_dir.mkdir(parents=True, exist_ok=True)

        if not filename.endswith(('.png', '.pdf', '.svg', '.jpg', '.jpeg')):
            filename += '.png'

        filepath = self.save_dir / filename
        fig.savefig(filepath, dpi=dpi, bbox_inches='tight')
        print(f"Figure saved: {filepath}")

    @staticmethod
    def close_all():
        """Close all figures to free memory."""
        plt.close('all')
