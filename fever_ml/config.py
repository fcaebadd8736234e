"""
Configuration file for the FEVER claim classification project
Contains all project-wide constants, paths, and hyperparameters
"""

from pathlib import Path
from typing import Dict, Any

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# Data paths
DATA_DIR = PROJECT_ROOT / "data"
RAW_DATA_DIR = DATA_DIR / "raw"
DEFAULT_DATASET = RAW_DATA_DIR / "train.jsonl"

# Model paths
MODELS_DIR = PROJECT_ROOT / "models"

# Experiment tracking
EXPERIMENTS_DIR = PROJECT_ROOT / "experiments"
RUNS_CSV = EXPERIMENTS_DIR / "runs.csv"

# Reports and figures
REPORTS_DIR = PROJECT_ROOT / "reports"
FIGURES_DIR = REPORTS_DIR / "figs"

# Random seed for reproducibility
RANDOM_SEED = 42

# Data split ratio (train gets the rest)
TEST_RATIO = 0.25

# Label vocabulary, in reporting order
LABELS = ("SUPPORTS", "REFUTES", "NOT ENOUGH INFO")

# Remote copies of the dataset
FEVER_URLS = {
    "train": "https://fever.ai/download/fever/train.jsonl",
    "dev": "https://fever.ai/download/fever/shared_task_dev.jsonl",
}

# Bag-of-words settings
VECTORIZER_CONFIG = {
    "remove_urls": True,
    "remove_numbers": True,
    "remove_stopwords": True,
    "stem": True,
    "min_token_length": 1,
}

# Scalar predictors appended to the document-feature matrix
SCALAR_FEATURES = ["char_count", "missing_evidence", "sentiment_positive", "is_verifiable"]

# Estimator hyperparameter grids
MODEL_CONFIG = {
    "logistic_regression": {
        "solver": "saga",
        "max_iter": 2000,
        "C_values": [0.01, 0.1, 1.0, 10.0],
        "l1_ratio_values": [0.0, 0.5, 1.0],
    },
    "knn": {
        "n_neighbors_values": [5, 7, 9],
        "weights_values": ["uniform", "distance"],
    },
    "gradient_boosting": {
        "n_estimators_values": [50, 100],
        "learning_rate_values": [0.05, 0.1],
        "max_depth_values": [3, 5],
    },
    "svm": {
        "kernel_values": ["linear", "rbf"],
        "C_values": [0.1, 1.0, 10.0],
    },
    "random_forest": {
        "n_estimators_values": [100, 300],
        "max_features_values": ["sqrt", "log2"],
        "min_samples_leaf_values": [1, 3],
    },
}

# Order in which the comparison is run and reported
MODEL_ORDER = ["logistic_regression", "knn", "gradient_boosting", "svm", "random_forest"]

# Training settings
TRAINING_CONFIG = {
    "cv_folds": 5,
    "n_jobs": -1,  # parallel CV folds
    "max_dense_bytes": 4 * 1024 ** 3,  # budget for densified matrices
}

# Metric settings
METRIC_CONFIG = {
    "nan_policy": "propagate",  # or "omit"
}

# Logging configuration
LOGGING_CONFIG = {
    "level": "INFO",
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "date_format": "%Y-%m-%d %H:%M:%S"
}


def get_config() -> Dict[str, Any]:
    """Return complete configuration dictionary"""
    return {
        "paths": {
            "project_root": str(PROJECT_ROOT),
            "data": str(DATA_DIR),
            "models": str(MODELS_DIR),
            "experiments": str(EXPERIMENTS_DIR),
            "reports": str(REPORTS_DIR)
        },
        "seed": RANDOM_SEED,
        "test_ratio": TEST_RATIO,
        "labels": list(LABELS),
        "vectorizer": VECTORIZER_CONFIG,
        "scalar_features": SCALAR_FEATURES,
        "models": MODEL_CONFIG,
        "training": TRAINING_CONFIG,
        "metrics": METRIC_CONFIG,
    }
