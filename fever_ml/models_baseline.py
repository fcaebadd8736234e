"""
Classical models for FEVER claim classification
Estimator descriptors for logistic regression, k-NN, gradient boosting,
SVM and random forest, and one fit-tune-evaluate routine shared by all
"""

import logging
import time
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import joblib
import numpy as np
from rich.console import Console
from scipy import sparse
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.dummy import DummyClassifier
from sklearn.ensemble import GradientBoostingClassifier, RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.model_selection import GridSearchCV, StratifiedKFold, cross_val_score
from sklearn.neighbors import KNeighborsClassifier
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.svm import SVC

from .config import LABELS, MODEL_CONFIG, MODEL_ORDER, MODELS_DIR, RANDOM_SEED, TRAINING_CONFIG
from .data_io import DataSplit
from .evaluate import EvaluationResult, evaluate_predictions, macro_f1_scorer

logger = logging.getLogger(__name__)

# Distance- and margin-based models need centred, scaled inputs
SCALED_MODELS = {'knn', 'svm'}

BASELINE_MODELS = {'majority'}


class ResourceExhaustedError(MemoryError):
    """Raised when a model cannot hold its inputs in memory"""


class DenseTransformer(TransformerMixin, BaseEstimator):
    """
    Densify sparse input ahead of centring

    Refuses matrices whose dense size would exceed max_bytes.
    """

    def __init__(self, max_bytes: Optional[int] = None):
        self.max_bytes = max_bytes

    def fit(self, X, y=None):
        return self

    def transform(self, X):
        if not sparse.issparse(X):
            return np.asarray(X)

        n_bytes = X.shape[0] * X.shape[1] * np.dtype(np.float64).itemsize
        if self.max_bytes is not None and n_bytes > self.max_bytes:
            raise ResourceExhaustedError(
                f"Densifying a {X.shape[0]:,} x {X.shape[1]:,} matrix needs "
                f"{n_bytes / 1024 ** 3:.1f} GiB, over the {self.max_bytes / 1024 ** 3:.1f} GiB budget"
            )
        try:
            return X.toarray()
        except MemoryError as e:
            raise ResourceExhaustedError(
                f"Out of memory densifying a {X.shape[0]:,} x {X.shape[1]:,} matrix"
            ) from e


def create_estimator(model_type: str, random_state: int = RANDOM_SEED) -> BaseEstimator:
    """Create an untuned estimator by name"""
    if model_type == 'logistic_regression':
        config = MODEL_CONFIG['logistic_regression']
        return LogisticRegression(
            solver=config['solver'],
            penalty='elasticnet',
            l1_ratio=0.5,
            max_iter=config['max_iter'],
            random_state=random_state
        )

    elif model_type == 'knn':
        return KNeighborsClassifier()

    elif model_type == 'gradient_boosting':
        return GradientBoostingClassifier(random_state=random_state)

    elif model_type == 'svm':
        return SVC(random_state=random_state)

    elif model_type == 'random_forest':
        return RandomForestClassifier(random_state=random_state)

    elif model_type == 'majority':
        return DummyClassifier(strategy='most_frequent')

    else:
        raise ValueError(f"Unknown model type: {model_type}")


def get_param_grid(model_type: str) -> Dict[str, List[Any]]:
    """Get hyperparameter grid for model type"""
    if model_type == 'logistic_regression':
        config = MODEL_CONFIG['logistic_regression']
        return {
            'C': config['C_values'],
            'l1_ratio': config['l1_ratio_values']
        }

    elif model_type == 'knn':
        config = MODEL_CONFIG['knn']
        return {
            'n_neighbors': config['n_neighbors_values'],
            'weights': config['weights_values']
        }

    elif model_type == 'gradient_boosting':
        config = MODEL_CONFIG['gradient_boosting']
        return {
            'n_estimators': config['n_estimators_values'],
            'learning_rate': config['learning_rate_values'],
            'max_depth': config['max_depth_values']
        }

    elif model_type == 'svm':
        config = MODEL_CONFIG['svm']
        return {
            'kernel': config['kernel_values'],
            'C': config['C_values']
        }

    elif model_type == 'random_forest':
        config = MODEL_CONFIG['random_forest']
        return {
            'n_estimators': config['n_estimators_values'],
            'max_features': config['max_features_values'],
            'min_samples_leaf': config['min_samples_leaf_values']
        }

    else:
        return {}


@dataclass(frozen=True)
class EstimatorSpec:
    """What to fit: an estimator factory, its grid, and whether to scale"""
    name: str
    factory: Callable[[int], BaseEstimator]
    param_grid: Dict[str, List[Any]] = field(default_factory=dict)
    scale: bool = False


def get_estimator_spec(model_type: str) -> EstimatorSpec:
    """Descriptor for a named model"""
    # fail fast on unknown names
    create_estimator(model_type)
    return EstimatorSpec(
        name=model_type,
        factory=partial(create_estimator, model_type),
        param_grid=get_param_grid(model_type),
        scale=model_type in SCALED_MODELS
    )


def get_estimator_specs(model_types: Optional[Sequence[str]] = None) -> List[EstimatorSpec]:
    """Descriptors for the compared models, in reporting order"""
    return [get_estimator_spec(name) for name in (model_types or MODEL_ORDER)]


class ClaimClassifier:
    """A tuned estimator for the three claim labels"""

    def __init__(
        self,
        spec: EstimatorSpec,
        random_state: int = RANDOM_SEED,
        cv_folds: int = TRAINING_CONFIG['cv_folds'],
        n_jobs: Optional[int] = TRAINING_CONFIG['n_jobs'],
        max_dense_bytes: Optional[int] = TRAINING_CONFIG['max_dense_bytes'],
        labels: Sequence[str] = LABELS,
        nan_policy: Optional[str] = None
    ):
        """
        Initialize classifier

        Args:
            spec: Estimator descriptor
            random_state: Random seed for the estimator and the CV folds
            cv_folds: Number of cross-validation folds
            n_jobs: Parallel CV fits (None for serial)
            max_dense_bytes: Memory budget when densifying for scaled models
            labels: Classes in reporting order
            nan_policy: How undefined per-class F1 enters macro-F1
        """
        self.spec = spec
        self.random_state = random_state
        self.cv_folds = cv_folds
        self.n_jobs = n_jobs
        self.max_dense_bytes = max_dense_bytes
        self.labels = tuple(labels)
        self.nan_policy = nan_policy

        self.model = None
        self.best_params_ = None
        self.cv_scores_ = None
        self.cv_selection_defined_ = True
        self.is_fitted = False

        self.console = Console()

    @property
    def name(self) -> str:
        return self.spec.name

    def build_pipeline(self) -> Pipeline:
        """Estimator, preceded by densify + standardize for scaled models"""
        steps = []
        if self.spec.scale:
            steps.append(('densify', DenseTransformer(max_bytes=self.max_dense_bytes)))
            steps.append(('scale', StandardScaler()))
        steps.append(('clf', self.spec.factory(self.random_state)))
        return Pipeline(steps)

    def pipeline_param_grid(self) -> Dict[str, List[Any]]:
        return {f"clf__{key}": values for key, values in self.spec.param_grid.items()}

    def _cv(self) -> StratifiedKFold:
        return StratifiedKFold(n_splits=self.cv_folds, shuffle=True, random_state=self.random_state)

    def train(self, X_train, y_train: np.ndarray):
        """
        Grid-search the hyperparameters, then refit on all training rows

        Args:
            X_train: Training features
            y_train: Training labels

        Returns:
            self
        """
        self.console.print(f"\n[bold cyan]Training {self.name} model...[/bold cyan]")
        scorer = macro_f1_scorer(self.labels, self.nan_policy)
        param_grid = self.pipeline_param_grid()

        try:
            if param_grid:
                self.console.print(f"  Performing grid search with {self.cv_folds}-fold CV...")

                grid_search = GridSearchCV(
                    self.build_pipeline(),
                    param_grid,
                    cv=self._cv(),
                    scoring=scorer,
                    n_jobs=self.n_jobs,
                    refit=True,
                    error_score='raise',
                    verbose=0
                )
                grid_search.fit(X_train, y_train)

                self.model = grid_search.best_estimator_
                self.best_params_ = {
                    key.replace('clf__', '', 1): value
                    for key, value in grid_search.best_params_.items()
                }
                self.cv_scores_ = {
                    'mean': float(grid_search.best_score_),
                    'std': float(grid_search.cv_results_['std_test_score'][grid_search.best_index_])
                }
                # with every grid point NaN, GridSearchCV falls back to the first candidate
                self.cv_selection_defined_ = not np.isnan(grid_search.best_score_)
                if not self.cv_selection_defined_:
                    logger.warning("%s: CV macro-F1 undefined for every grid point; "
                                   "hyperparameters were not selected on score", self.name)
            else:
                # No hyperparameters to tune; still report a CV estimate
                pipeline = self.build_pipeline()
                scores = cross_val_score(
                    pipeline, X_train, y_train,
                    cv=self._cv(), scoring=scorer, n_jobs=self.n_jobs, error_score='raise'
                )
                self.model = pipeline.fit(X_train, y_train)
                self.best_params_ = {}
                self.cv_selection_defined_ = True
                self.cv_scores_ = {'mean': float(np.mean(scores)), 'std': float(np.std(scores))}
        except ResourceExhaustedError:
            logger.error("%s: aborting, inputs do not fit in memory", self.name)
            raise
        except MemoryError as e:
            logger.error("%s: aborting, out of memory during fit", self.name)
            raise ResourceExhaustedError(f"{self.name}: out of memory during fit") from e

        self.is_fitted = True
        self.console.print(f"  Best parameters: {self.best_params_}")
        self.console.print(f"  CV macro-F1: {self.cv_scores_['mean']:.4f} "
                           f"(+/- {self.cv_scores_['std']:.4f})")
        self.console.print(f"[green]✓ {self.name} training complete[/green]")
        return self

    def predict(self, X) -> np.ndarray:
        """
        Make predictions

        Args:
            X: Feature matrix

        Returns:
            Predicted labels
        """
        if not self.is_fitted:
            raise RuntimeError("Model must be trained before prediction")

        try:
            return self.model.predict(X)
        except ResourceExhaustedError:
            raise
        except MemoryError as e:
            raise ResourceExhaustedError(f"{self.name}: out of memory during prediction") from e

    def evaluate(self, X, y_true: np.ndarray) -> EvaluationResult:
        """
        Score the model on labelled data

        Args:
            X: Feature matrix
            y_true: True labels

        Returns:
            EvaluationResult
        """
        y_pred = self.predict(X)
        return evaluate_predictions(y_true, y_pred, labels=self.labels,
                                    nan_policy=self.nan_policy, model_name=self.name)

    def save(self, path: Optional[Path] = None) -> Path:
        """
        Save model to disk

        Args:
            path: Path to save model (auto-generated if None)
        """
        if path is None:
            path = MODELS_DIR / f"{self.name}_{self.random_state}.pkl"

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        model_data = {
            'model': self.model,
            'model_type': self.name,
            'random_state': self.random_state,
            'labels': self.labels,
            'best_params': self.best_params_,
            'cv_scores': self.cv_scores_,
            'cv_selection_defined': self.cv_selection_defined_,
            'is_fitted': self.is_fitted
        }

        joblib.dump(model_data, path)
        self.console.print(f"[green]✓ Model saved to {path}[/green]")
        return path

    @classmethod
    def load(cls, path: Path):
        """
        Load model from disk

        Args:
            path: Path to saved model

        Returns:
            ClaimClassifier instance
        """
        model_data = joblib.load(path)

        instance = cls(
            get_estimator_spec(model_data['model_type']),
            random_state=model_data['random_state'],
            labels=model_data['labels']
        )
        instance.model = model_data['model']
        instance.best_params_ = model_data['best_params']
        instance.cv_scores_ = model_data['cv_scores']
        instance.cv_selection_defined_ = model_data.get('cv_selection_defined', True)
        instance.is_fitted = model_data['is_fitted']

        return instance


@dataclass(frozen=True)
class ModelOutcome:
    """Everything one fit-tune-evaluate run produced"""
    name: str
    classifier: ClaimClassifier
    best_params: Dict[str, Any]
    cv_macro_f1: float
    cv_std: float
    test: EvaluationResult
    fit_seconds: float
    cv_selection_defined: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'best_params': self.best_params,
            'cv_macro_f1': self.cv_macro_f1,
            'cv_std': self.cv_std,
            'cv_selection_defined': self.cv_selection_defined,
            'fit_seconds': self.fit_seconds,
            'test': self.test.to_dict(),
        }


def fit_tune_evaluate(spec: EstimatorSpec, split: DataSplit, **classifier_kwargs) -> ModelOutcome:
    """
    Tune on the training partition, refit, and score the held-out partition

    Args:
        spec: Estimator descriptor
        split: Fixed train/test partition
        **classifier_kwargs: Passed to ClaimClassifier

    Returns:
        ModelOutcome
    """
    start = time.time()
    classifier = ClaimClassifier(spec, **classifier_kwargs).train(split.X_train, split.y_train)
    test_result = classifier.evaluate(split.X_test, split.y_test)

    return ModelOutcome(
        name=spec.name,
        classifier=classifier,
        best_params=dict(classifier.best_params_),
        cv_macro_f1=classifier.cv_scores_['mean'],
        cv_std=classifier.cv_scores_['std'],
        test=test_result,
        fit_seconds=time.time() - start,
        cv_selection_defined=classifier.cv_selection_defined_,
    )


def train_all_models(
    split: DataSplit,
    specs: Optional[Sequence[EstimatorSpec]] = None,
    on_outcome: Optional[Callable[[ModelOutcome], None]] = None,
    **classifier_kwargs
) -> Dict[str, ModelOutcome]:
    """
    Run fit-tune-evaluate for every descriptor on the same partition

    A ResourceExhaustedError aborts the whole comparison.

    Args:
        split: Fixed train/test partition
        specs: Estimator descriptors (the five compared models if None)
        on_outcome: Called with each outcome as soon as its model finishes
        **classifier_kwargs: Passed to ClaimClassifier

    Returns:
        Dictionary of outcomes keyed by model name, in run order
    """
    outcomes = {}
    for spec in (specs if specs is not None else get_estimator_specs()):
        outcome = fit_tune_evaluate(spec, split, **classifier_kwargs)
        outcomes[spec.name] = outcome
        if on_outcome is not None:
            on_outcome(outcome)
    return outcomes
