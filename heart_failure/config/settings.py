"""
Configuration settings for the heart failure analysis project.
"""

from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"
OUTPUT_DIR = PROJECT_ROOT / "output"
FIGURES_DIR = OUTPUT_DIR / "figures"
RESULTS_DIR = OUTPUT_DIR / "results"

# Data file paths
DATA_FILE = DATA_DIR / "heart_failure_clinical_records_dataset.csv"


# Analysis parameters
class AnalysisConfig:
    """Configuration parameters for analysis."""

    # Response column (after renaming)
    RESPONSE = 'death_event'

    # Predicted probability at or above this maps to the positive class
    DECISION_THRESHOLD = 0.5

    # Cross-validation
    CV_FOLDS = 5
    HOLDOUT_FRACTION = 0.2

    # Statistical significance level
    ALPHA = 0.05

    # Random seed for reproducibility
    RANDOM_SEED = 42

    # Follow-up time is recorded until death or censoring, so it leaks the outcome
    EXCLUDED_PREDICTORS = ['time']

    CONTINUOUS_PREDICTORS = [
        'age', 'cpk', 'ejection_fraction', 'platelets',
        'serum_creatinine', 'serum_sodium',
    ]

    BINARY_PREDICTORS = [
        'anaemia', 'diabetes', 'high_blood_pressure', 'sex', 'smoking',
    ]

    # Candidate logistic models, largest first
    GLM_FORMULAS = {
        'full': ('death_event ~ age + anaemia + cpk + diabetes + ejection_fraction'
                 ' + high_blood_pressure + platelets + serum_creatinine'
                 ' + serum_sodium + sex + smoking'),
        'clinical': ('death_event ~ age + ejection_fraction + serum_creatinine'
                     ' + serum_sodium + high_blood_pressure + anaemia'),
        'reduced': 'death_event ~ age + ejection_fraction + serum_creatinine',
        'null': 'death_event ~ 1',
    }

    SVM_FORMULA = 'death_event ~ age + ejection_fraction + serum_creatinine + serum_sodium'
    SVM_PARAMS = {
        'kernel': 'rbf',
        'C': 1.0,
        'gamma': 'scale',
    }

    # Maximum IRLS iterations for GLM fitting
    GLM_MAX_ITER = 100


# Column names mapping (raw dataset headers to project names)
COLUMN_MAPPING = {
    'age': 'age',
    'anaemia': 'anaemia',
    'creatinine_phosphokinase': 'cpk',
    'diabetes': 'diabetes',
    'ejection_fraction': 'ejection_fraction',
    'high_blood_pressure': 'high_blood_pressure',
    'platelets': 'platelets',
    'serum_creatinine': 'serum_creatinine',
    'serum_sodium': 'serum_sodium',
    'sex': 'sex',
    'smoking': 'smoking',
    'time': 'time',
    'DEATH_EVENT': 'death_event',
}
