"""
Evaluation module for FEVER claim classification
Confusion matrices, macro-F1 with explicit undefined classes, and plots
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from rich.table import Table
from sklearn.metrics import confusion_matrix, make_scorer

from .config import LABELS, METRIC_CONFIG
from .utils import console, format_score

logger = logging.getLogger(__name__)

NAN_POLICIES = ('propagate', 'omit')


def per_class_scores(cm: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Precision, recall and F1 for every class of a confusion matrix

    Rows are true classes, columns predicted classes. F1 is
    2TP / (2TP + FP + FN). A class that is never predicted (zero true and
    zero predicted positives) has undefined precision and F1; one that never
    occurs has undefined recall, but scores F1 = 0 if it was predicted.
    Undefined values are NaN.

    Args:
        cm: Square confusion matrix

    Returns:
        Tuple of (precision, recall, f1) arrays
    """
    cm = np.asarray(cm, dtype=float)
    if cm.ndim != 2 or cm.shape[0] != cm.shape[1]:
        raise ValueError(f"Confusion matrix must be square, got shape {cm.shape}")

    tp = np.diag(cm)
    predicted = cm.sum(axis=0)
    actual = cm.sum(axis=1)

    with np.errstate(divide='ignore', invalid='ignore'):
        precision = np.where(predicted > 0, tp / predicted, np.nan)
        recall = np.where(actual > 0, tp / actual, np.nan)
        # predicted + actual == 2TP + FP + FN
        f1 = np.where(predicted > 0, 2 * tp / (predicted + actual), np.nan)

    return precision, recall, f1


def macro_average(values: np.ndarray, nan_policy: str = 'propagate') -> float:
    """Unweighted mean, either propagating or skipping NaN entries"""
    if nan_policy not in NAN_POLICIES:
        raise ValueError(f"nan_policy must be one of {NAN_POLICIES}, got {nan_policy!r}")

    values = np.asarray(values, dtype=float)
    if nan_policy == 'omit':
        defined = values[~np.isnan(values)]
        return float(defined.mean()) if len(defined) else float('nan')
    return float(values.mean())


def macro_f1_score(
    y_true: Sequence,
    y_pred: Sequence,
    labels: Sequence[str] = LABELS,
    nan_policy: Optional[str] = None
) -> float:
    """
    Macro-averaged F1 over a fixed label set

    Args:
        y_true: True labels
        y_pred: Predicted labels
        labels: Classes to average over
        nan_policy: 'propagate' (default from config) or 'omit'

    Returns:
        Macro-F1, NaN when undefined under the chosen policy
    """
    nan_policy = nan_policy or METRIC_CONFIG['nan_policy']
    cm = confusion_matrix(y_true, y_pred, labels=list(labels))
    _, _, f1 = per_class_scores(cm)
    return macro_average(f1, nan_policy)


def macro_f1_scorer(labels: Sequence[str] = LABELS, nan_policy: Optional[str] = None):
    """Scorer for cross-validation using the same macro-F1 as the test set"""
    return make_scorer(macro_f1_score, labels=tuple(labels), nan_policy=nan_policy)


@dataclass(frozen=True)
class EvaluationResult:
    """Confusion matrix and derived scores for one set of predictions"""
    labels: Tuple[str, ...]
    confusion_matrix: np.ndarray
    precision: np.ndarray
    recall: np.ndarray
    f1: np.ndarray
    macro_f1: float
    accuracy: float
    nan_policy: str = 'propagate'
    model_name: str = ''

    @property
    def undefined_classes(self) -> Tuple[str, ...]:
        return tuple(label for label, score in zip(self.labels, self.f1) if math.isnan(score))

    @property
    def is_defined(self) -> bool:
        return not math.isnan(self.macro_f1)

    def per_class_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            'label': self.labels,
            'precision': self.precision,
            'recall': self.recall,
            'f1': self.f1,
            'support': self.confusion_matrix.sum(axis=1).astype(int),
        })

    def to_dict(self) -> Dict[str, Any]:
        return {
            'model_name': self.model_name,
            'accuracy': self.accuracy,
            'macro_f1': self.macro_f1,
            'undefined_classes': list(self.undefined_classes),
            'per_class_f1': dict(zip(self.labels, self.f1.tolist())),
            'confusion_matrix': self.confusion_matrix.tolist(),
        }


def evaluate_predictions(
    y_true: Sequence,
    y_pred: Sequence,
    labels: Sequence[str] = LABELS,
    nan_policy: Optional[str] = None,
    model_name: str = ''
) -> EvaluationResult:
    """
    Score predictions against the truth

    Args:
        y_true: True labels
        y_pred: Predicted labels
        labels: Classes in reporting order
        nan_policy: How undefined per-class F1 enters the macro mean
        model_name: Name for display

    Returns:
        EvaluationResult
    """
    nan_policy = nan_policy or METRIC_CONFIG['nan_policy']
    labels = tuple(labels)
    cm = confusion_matrix(y_true, y_pred, labels=list(labels))
    precision, recall, f1 = per_class_scores(cm)
    total = cm.sum()

    result = EvaluationResult(
        labels=labels,
        confusion_matrix=cm,
        precision=precision,
        recall=recall,
        f1=f1,
        macro_f1=macro_average(f1, nan_policy),
        accuracy=float(np.trace(cm) / total) if total else float('nan'),
        nan_policy=nan_policy,
        model_name=model_name,
    )

    if result.undefined_classes:
        logger.warning(
            "%s: F1 undefined for %s (never predicted)",
            model_name or "model", ", ".join(result.undefined_classes)
        )
    return result


def display_evaluation(result: EvaluationResult, title: Optional[str] = None):
    """Print per-class scores and the confusion matrix"""
    table = Table(title=title or f"{result.model_name} - per-class scores",
                  show_header=True, header_style="bold magenta")
    table.add_column("Label", style="cyan", no_wrap=True)
    for col in ("Precision", "Recall", "F1", "Support"):
        table.add_column(col, style="green")

    for row in result.per_class_frame().itertuples(index=False):
        table.add_row(row.label, format_score(row.precision), format_score(row.recall),
                      format_score(row.f1), str(row.support))
    table.add_row("[bold]macro[/bold]", "", "", format_score(result.macro_f1), str(int(result.confusion_matrix.sum())))
    console.print(table)

    cm_table = Table(title="Confusion matrix (rows = true)", show_header=True)
    cm_table.add_column("", style="cyan")
    for label in result.labels:
        cm_table.add_column(label)
    for label, row in zip(result.labels, result.confusion_matrix):
        cm_table.add_row(label, *[str(int(v)) for v in row])
    console.print(cm_table)


def compare_results(outcomes: Dict[str, Any]) -> pd.DataFrame:
    """
    Comparison table across models, best macro-F1 first

    Undefined scores stay NaN and sort last.

    Args:
        outcomes: Model name -> ModelOutcome
    """
    rows = []
    for name, outcome in outcomes.items():
        rows.append({
            'Model': name,
            'CV macro-F1': outcome.cv_macro_f1,
            'Test macro-F1': outcome.test.macro_f1,
            'Accuracy': outcome.test.accuracy,
            'Undefined classes': ', '.join(outcome.test.undefined_classes),
            'CV selection defined': outcome.cv_selection_defined,
        })
    frame = pd.DataFrame(rows, columns=['Model', 'CV macro-F1', 'Test macro-F1', 'Accuracy', 'Undefined classes',
                                        'CV selection defined'])
    return frame.sort_values('Test macro-F1', ascending=False, na_position='last').reset_index(drop=True)


def plot_confusion_matrix(
    result: EvaluationResult,
    title: Optional[str] = None,
    save_path: Optional[Path] = None
):
    """Plot confusion matrix heatmap"""
    fig, ax = plt.subplots(figsize=(8, 6))

    sns.heatmap(result.confusion_matrix, annot=True, fmt='d', cmap='Blues',
                xticklabels=result.labels, yticklabels=result.labels, ax=ax)

    ax.set_title(title or f"Confusion Matrix - {result.model_name}", fontsize=16)
    ax.set_ylabel('True Label', fontsize=12)
    ax.set_xlabel('Predicted Label', fontsize=12)
    fig.tight_layout()

    if save_path:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=100, bbox_inches='tight')
        console.print(f"[green]✓ Confusion matrix saved to {save_path}[/green]")

    plt.close(fig)
    return fig


def plot_model_comparison(comparison: pd.DataFrame, save_path: Optional[Path] = None):
    """Bar chart of CV and test macro-F1 per model"""
    long = comparison.melt(id_vars='Model', value_vars=['CV macro-F1', 'Test macro-F1'],
                           var_name='Split', value_name='Macro-F1')

    fig, ax = plt.subplots(figsize=(10, 6))
    sns.barplot(data=long, x='Model', y='Macro-F1', hue='Split', ax=ax)
    ax.set_ylim(0, 1)
    ax.set_title('Macro-F1 by Model', fontsize=16)
    ax.grid(True, axis='y', alpha=0.3)
    fig.tight_layout()

    if save_path:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=100, bbox_inches='tight')
        console.print(f"[green]✓ Model comparison saved to {save_path}[/green]")

    plt.close(fig)
    return fig
