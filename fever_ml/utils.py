"""
Utility functions for the FEVER claim classification project
"""

import random
import numpy as np
import logging
from pathlib import Path
from typing import Dict, Any, Optional
import json
import csv
import math
from datetime import datetime
from rich.console import Console

from .config import LOGGING_CONFIG

# Initialize rich console for pretty printing
console = Console()


def set_seed(seed: int = 42):
    """
    Set random seed for reproducibility across all libraries

    Args:
        seed: Random seed value
    """
    random.seed(seed)
    np.random.seed(seed)
    console.print(f"[green]✓[/green] Random seed set to {seed}")


def setup_logging(name: str = "fever_ml", level: Optional[str] = None) -> logging.Logger:
    """
    Setup logging configuration

    Args:
        name: Logger name
        level: Logging level (defaults to LOGGING_CONFIG)

    Returns:
        Configured logger instance
    """
    level = level or LOGGING_CONFIG["level"]
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level))

    # Remove existing handlers
    logger.handlers.clear()

    # Console handler
    ch = logging.StreamHandler()
    ch.setLevel(getattr(logging, level))

    # Formatter
    formatter = logging.Formatter(
        LOGGING_CONFIG["format"],
        datefmt=LOGGING_CONFIG["date_format"]
    )
    ch.setFormatter(formatter)

    logger.addHandler(ch)
    return logger


def format_score(score: Any) -> str:
    """Render a metric value, spelling out undefined ones"""
    if isinstance(score, (float, np.floating)):
        return "undefined" if math.isnan(score) else f"{score:.4f}"
    return str(score)


def log_experiment(
    experiment_name: str,
    model_name: str,
    metrics: Dict[str, Any],
    hyperparams: Dict[str, Any],
    seed: int,
    csv_path: Path
) -> str:
    """
    Log experiment results to CSV file

    Undefined metrics are written as empty cells, never as zero.

    Args:
        experiment_name: Name of the experiment
        model_name: Estimator name (e.g., "knn", "random_forest")
        metrics: Dictionary of metric scores
        hyperparams: Selected hyperparameters
        seed: Random seed
        csv_path: Path to CSV file

    Returns:
        The generated experiment id
    """
    # Ensure CSV exists with headers
    if not csv_path.exists():
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        with open(csv_path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow([
                'experiment_id', 'experiment_name', 'model_name', 'seed',
                'accuracy', 'macro_f1', 'cv_macro_f1', 'cv_selection_defined',
                'undefined_classes', 'hyperparams', 'timestamp'
            ])

    def cell(key):
        value = metrics.get(key)
        if value is None or (isinstance(value, float) and math.isnan(value)):
            return ''
        return value

    experiment_id = f"{model_name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

    with open(csv_path, 'a', newline='') as f:
        writer = csv.writer(f)
        writer.writerow([
            experiment_id,
            experiment_name,
            model_name,
            seed,
            cell('accuracy'),
            cell('macro_f1'),
            cell('cv_macro_f1'),
            cell('cv_selection_defined'),
            ';'.join(metrics.get('undefined_classes', ())),
            json.dumps(hyperparams, default=str),
            datetime.now().isoformat()
        ])

    console.print(f"[green]✓[/green] Experiment logged: {experiment_id}")
    return experiment_id


def class_distribution(labels: np.ndarray) -> Dict[str, float]:
    """
    Share of each label in an array of labels

    Args:
        labels: Array of labels

    Returns:
        Dictionary mapping label to its share
    """
    unique, counts = np.unique(labels, return_counts=True)
    total = len(labels)
    shares = {str(cls): count / total for cls, count in zip(unique, counts)}

    console.print("[yellow]Class distribution:[/yellow]")
    for cls, count in zip(unique, counts):
        console.print(f"  {cls}: {count} samples ({count/total*100:.1f}%)")

    return shares


def save_json(payload: Dict[str, Any], path: Path):
    """Write a JSON document, creating parent directories"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(payload, f, indent=2, default=str)
    console.print(f"[green]✓[/green] Saved {path}")
