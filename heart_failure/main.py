"""
Main entry point for heart failure analysis project.

This script provides a command-line interface to explore the clinical
records and compare the outcome models.
"""

import argparse
import sys
from pathlib import Path

import pandas as pd

from .config.settings import AnalysisConfig, RESULTS_DIR
from .data import HeartFailureDataLoader
from .analysis import build_candidates, holdout_scores, run_model_comparison
from .utils import HeartFailureVisualizer, StatisticalAnalyzer


def run_data_exploration(data_file=None, save_figures: bool = False,
                         seed: int = AnalysisConfig.RANDOM_SEED):
    """Run basic data exploration."""
    print("=== Heart Failure Data Exploration ===")

    loader = HeartFailureDataLoader(data_file)
    data = loader.preprocess_data()

    summary = loader.get_summary_statistics()
    print("\nData Summary:")
    for key, value in summary.items():
        print(f"{key}: {value}")

    analyzer = StatisticalAnalyzer()
    correlations = analyzer.outcome_correlations(data)
    print("\nCorrelation with death_event:")
    print(correlations.to_string(index=False, float_format='%.4f'))

    comparison = analyzer.compare_by_outcome(data)
    print("\nPredictors by outcome:")
    print(comparison[['predictor', 'test', 'normal', 'p_value', 'significant']].to_string(index=False))

    if save_figures:
        visualizer = HeartFailureVisualizer()
        visualizer.correlation_heatmap(data, save_name='correlation_heatmap')
        for col in AnalysisConfig.CONTINUOUS_PREDICTORS:
            visualizer.distribution_plot(data, col, save_name=f'distribution_{col}')
            visualizer.box_plot(data, col, save_name=f'boxplot_{col}')
        visualizer.outcome_rate_plot(data, AnalysisConfig.BINARY_PREDICTORS,
                                     save_name='outcome_rate_by_indicator')
        visualizer.close_all()
        print("Visualizations saved to output/figures/")

    train_data, test_data = loader.split_holdout(seed=seed)

    return data, train_data, test_data


def run_comparison(data: pd.DataFrame, train_data: pd.DataFrame, test_data: pd.DataFrame,
                   folds: int, seed: int, workers=None, save_results: bool = False):
    """Run GLM/SVM model comparison followed by the held-out evaluation."""
    print("\n=== Model Comparison ===")

    results = run_model_comparison(data, k=folds, seed=seed, n_workers=workers)

    print("\nCross-validated scores:")
    print(results['cv_comparison'].to_string(index=False))

    print(f"\n=== Hold-out Evaluation ({len(train_data)} train / {len(test_data)} test) ===")
    holdout = holdout_scores(train_data, test_data, build_candidates())
    print(holdout.to_string(index=False, float_format='%.4f'))
    results['holdout'] = holdout

    if save_results:
        RESULTS_DIR.mkdir(parents=True, exist_ok=True)
        results['aic_table'].to_csv(RESULTS_DIR / 'aic_table.csv', index=False)
        results['coefficients'].to_csv(RESULTS_DIR / 'full_model_coefficients.csv')
        results['cv_comparison'].to_csv(RESULTS_DIR / 'cv_comparison.csv', index=False)
        holdout.to_csv(RESULTS_DIR / 'holdout_scores.csv', index=False)

        visualizer = HeartFailureVisualizer()
        visualizer.cv_score_plot(results['cv_comparison'], score='f1', save_name='cv_f1')
        visualizer.cv_score_plot(results['cv_comparison'], score='mae', save_name='cv_mae')
        visualizer.close_all()
        print(f"Results saved to {RESULTS_DIR}")

    return results


def main(argv=None):
    """Main function."""
    parser = argparse.ArgumentParser(description='Heart Failure Outcome Analysis')
    parser.add_argument(
        '--data',
        type=Path,
        default=None,
        help='Path to the clinical records CSV/XLSX file'
    )
    parser.add_argument(
        '--explore',
        action='store_true',
        help='Run data exploration'
    )
    parser.add_argument(
        '--compare',
        action='store_true',
        help='Run model comparison'
    )
    parser.add_argument(
        '--all',
        action='store_true',
        help='Run all analyses'
    )
    parser.add_argument(
        '--folds',
        type=int,
        default=AnalysisConfig.CV_FOLDS,
        help='Number of cross-validation folds'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=AnalysisConfig.RANDOM_SEED,
        help='Random seed for fold assignment'
    )
    parser.add_argument(
        '--workers',
        type=int,
        default=None,
        help='Threads used to evaluate folds in parallel'
    )
    parser.add_argument(
        '--save',
        action='store_true',
        help='Save figures and result tables under output/'
    )

    args = parser.parse_args(argv)

    if not any([args.explore, args.compare, args.all]):
        parser.print_help()
        return 0

    try:
        data, train_data, test_data = run_data_exploration(
            args.data, save_figures=args.save and (args.explore or args.all), seed=args.seed)

        if args.compare or args.all:
            run_comparison(data, train_data, test_data, args.folds, args.seed,
                           args.workers, save_results=args.save)

        print("\nAnalysis completed successfully!")

    except Exception as e:
        print(f"Error during analysis: {str(e)}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
