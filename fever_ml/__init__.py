"""
FEVER Claim Classification - Source Package

This package contains the core modules for the FEVER claim-label study:
- config: Configuration and hyperparameter grids
- data_io: Claim schema, JSONL loading and train/test partitioning
- preprocess: Claim text tokenization, stop words and stemming
- features: Derived claim features and the document-feature matrix
- models_baseline: Estimator descriptors and the fit-tune-evaluate routine
- evaluate: Confusion matrices, macro-F1 and evaluation plots
- eda: Descriptive analysis of the claim corpus
- train: End-to-end training pipeline
- utils: Utility functions
"""

__version__ = "1.0.0"

# Lazy imports - modules are imported when accessed
__all__ = [
    "config",
    "data_io",
    "preprocess",
    "features",
    "models_baseline",
    "evaluate",
    "eda",
    "train",
    "utils",
]
