"""
Unified training script for FEVER claim classification
Runs load -> derive features -> vectorize -> split -> fit-tune-evaluate
for each compared model on one fixed partition
"""

import argparse
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import matplotlib
import pandas as pd
from rich.console import Console
from rich.table import Table

from .config import (
    EXPERIMENTS_DIR,
    FIGURES_DIR,
    MODEL_ORDER,
    MODELS_DIR,
    RANDOM_SEED,
    RUNS_CSV,
    TEST_RATIO,
    TRAINING_CONFIG,
    get_config,
)
from .data_io import ClaimDataLoader, DataSplit, partition_indices, split_rows
from .evaluate import compare_results, display_evaluation, plot_confusion_matrix, plot_model_comparison
from .features import (
    DesignMatrix,
    FeatureExtractor,
    LexiconSentiment,
    build_design_matrix,
    create_feature_extractor,
    derive_claim_features,
)
from .models_baseline import (
    BASELINE_MODELS,
    ModelOutcome,
    ResourceExhaustedError,
    get_estimator_spec,
    train_all_models,
)
from .utils import class_distribution, format_score, log_experiment, save_json, set_seed, setup_logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedData:
    """Output of the data stages, shared unchanged by every model"""
    claims: pd.DataFrame
    design: DesignMatrix
    split: DataSplit
    extractor: FeatureExtractor


def prepare_data(
    claims: pd.DataFrame,
    sentiment: LexiconSentiment,
    extractor: FeatureExtractor,
    test_ratio: float = TEST_RATIO,
    seed: int = RANDOM_SEED
) -> PreparedData:
    """
    Derive features, fix the vocabulary on the training rows, and split

    Args:
        claims: Claim DataFrame from ClaimDataLoader
        sentiment: Lexicon scorer for the sentiment feature
        extractor: Unfitted FeatureExtractor
        test_ratio: Proportion of rows held out
        seed: Random seed for the partition

    Returns:
        PreparedData
    """
    featured = derive_claim_features(claims, sentiment)
    train_index, test_index = partition_indices(len(featured), test_ratio, seed)

    extractor.fit(featured.iloc[train_index])
    design = build_design_matrix(featured, extractor)
    split = split_rows(design.X, design.y, train_index, test_index)

    return PreparedData(claims=featured, design=design, split=split, extractor=extractor)


class ModelTrainer:
    """Runs the model comparison end to end"""

    def __init__(
        self,
        model_types: Optional[Sequence[str]] = None,
        experiment_name: str = "fever_claims",
        data_path: Optional[Path] = None,
        limit: Optional[int] = None,
        seed: int = RANDOM_SEED,
        cv_folds: int = TRAINING_CONFIG['cv_folds'],
        n_jobs: Optional[int] = TRAINING_CONFIG['n_jobs'],
        save_models: bool = True,
        plots: bool = True,
        runs_csv: Path = RUNS_CSV,
        output_dir: Path = EXPERIMENTS_DIR,
        models_dir: Path = MODELS_DIR,
        figures_dir: Path = FIGURES_DIR
    ):
        """
        Initialize trainer

        Args:
            model_types: Models to compare (the five defaults if None)
            experiment_name: Name for experiment logging
            data_path: JSONL claim file
            limit: Read at most this many claims
            seed: Random seed
            cv_folds: Cross-validation folds per grid search
            n_jobs: Parallel CV fits
            save_models: Persist fitted models and the feature extractor
            plots: Write confusion matrices and the comparison chart
            runs_csv: Experiment ledger
            output_dir: Where the comparison summary goes
            models_dir: Where fitted models are saved
            figures_dir: Where figures are written
        """
        self.model_types = list(model_types or MODEL_ORDER)
        self.experiment_name = experiment_name
        self.loader = ClaimDataLoader(data_path, limit=limit)
        self.seed = seed
        self.cv_folds = cv_folds
        self.n_jobs = n_jobs
        self.save_models = save_models
        self.plots = plots
        self.runs_csv = Path(runs_csv)
        self.output_dir = Path(output_dir)
        self.models_dir = Path(models_dir)
        self.figures_dir = Path(figures_dir)
        self.console = Console()

        # Unknown names fail before any data is read
        self.specs = [get_estimator_spec(name) for name in self.model_types]

    def load_data(self) -> pd.DataFrame:
        """Load the claim file"""
        return self.loader.load_data()

    def prepare(self, claims: pd.DataFrame) -> PreparedData:
        """Run the feature and split stages"""
        self.console.print("[cyan]Extracting features...[/cyan]")
        prepared = prepare_data(
            claims,
            sentiment=LexiconSentiment(),
            extractor=create_feature_extractor(),
            seed=self.seed
        )

        self.console.print(f"  Predictor matrix: {prepared.design.shape[0]:,} x {prepared.design.shape[1]:,}")
        self.loader.display_split_statistics(prepared.split.y_train, prepared.split.y_test)
        class_distribution(prepared.split.y_train)
        return prepared

    def run_models(self, split: DataSplit) -> Dict[str, ModelOutcome]:
        """Fit-tune-evaluate every model on the shared partition"""
        try:
            return train_all_models(
                split,
                specs=self.specs,
                on_outcome=self.report,
                random_state=self.seed,
                cv_folds=self.cv_folds,
                n_jobs=self.n_jobs
            )
        except ResourceExhaustedError as e:
            self.console.print(f"[red]✗ Comparison aborted: {e}[/red]")
            raise

    def report(self, outcome: ModelOutcome):
        """Show and record one model as soon as it finishes"""
        display_evaluation(outcome.test, title=f"{outcome.name} - test set")
        self.record(outcome)

    def record(self, outcome: ModelOutcome):
        """Ledger row, saved model and confusion-matrix figure for one model"""
        log_experiment(
            experiment_name=self.experiment_name,
            model_name=outcome.name,
            metrics={
                'accuracy': outcome.test.accuracy,
                'macro_f1': outcome.test.macro_f1,
                'cv_macro_f1': outcome.cv_macro_f1,
                'cv_selection_defined': outcome.cv_selection_defined,
                'undefined_classes': outcome.test.undefined_classes,
            },
            hyperparams=outcome.best_params,
            seed=self.seed,
            csv_path=self.runs_csv
        )

        if self.save_models:
            outcome.classifier.save(self.models_dir / f"{outcome.name}_{self.seed}.pkl")

        if self.plots:
            plot_confusion_matrix(
                outcome.test,
                save_path=self.figures_dir / f"confusion_matrix_{outcome.name}.png"
            )

    def display_comparison(self, comparison: pd.DataFrame):
        table = Table(title="Model Comparison (macro-F1)", show_header=True, header_style="bold magenta")
        for col in comparison.columns:
            table.add_column(col, style="cyan" if col == 'Model' else "green", no_wrap=col == 'Model')

        for _, row in comparison.iterrows():
            table.add_row(*[format_score(value) for value in row])

        self.console.print(table)

    def train(self) -> Dict[str, ModelOutcome]:
        """Main training pipeline"""
        start_time = time.time()

        self.console.print(f"\n{'='*60}")
        self.console.print("[bold cyan]FEVER Claim Label Model Comparison[/bold cyan]")
        self.console.print(f"Experiment: {self.experiment_name}")
        self.console.print(f"Models: {', '.join(self.model_types)}")
        self.console.print(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        self.console.print(f"{'='*60}\n")

        set_seed(self.seed)
        prepared = self.prepare(self.load_data())

        if self.save_models:
            prepared.extractor.save(self.models_dir / f"feature_extractor_{self.seed}.pkl")

        outcomes = self.run_models(prepared.split)

        comparison = compare_results(outcomes)
        self.display_comparison(comparison)

        save_json(
            {
                'experiment': self.experiment_name,
                'seed': self.seed,
                'n_rows': prepared.split.n_rows,
                'n_features': prepared.design.shape[1],
                'config': get_config(),
                'models': [outcome.to_dict() for outcome in outcomes.values()],
            },
            self.output_dir / f"comparison_{self.experiment_name}.json"
        )

        if self.plots:
            plot_model_comparison(comparison, save_path=self.figures_dir / "model_comparison.png")

        training_time = time.time() - start_time
        self.console.print(f"\n{'='*60}")
        self.console.print("[bold green]✨ Training Complete![/bold green]")
        self.console.print(f"Total time: {training_time:.2f} seconds")
        self.console.print(f"{'='*60}\n")

        return outcomes


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Train and compare FEVER claim label models")

    parser.add_argument('--data', type=Path, default=None,
                        help='JSONL claim file')

    parser.add_argument('--models', nargs='+', default=MODEL_ORDER,
                        choices=MODEL_ORDER + sorted(BASELINE_MODELS),
                        help='Models to compare')

    parser.add_argument('--limit', type=int, default=None,
                        help='Read at most this many claims')

    parser.add_argument('--experiment', type=str, default='fever_claims',
                        help='Experiment name for tracking')

    parser.add_argument('--cv-folds', type=int, default=TRAINING_CONFIG['cv_folds'],
                        help='Cross-validation folds')

    parser.add_argument('--n-jobs', type=int, default=TRAINING_CONFIG['n_jobs'],
                        help='Parallel CV fits')

    parser.add_argument('--seed', type=int, default=RANDOM_SEED,
                        help='Random seed')

    parser.add_argument('--no-save', action='store_true',
                        help='Do not persist fitted models')

    parser.add_argument('--no-plots', action='store_true',
                        help='Do not write figures')

    args = parser.parse_args(argv)

    matplotlib.use('Agg')
    setup_logging()

    trainer = ModelTrainer(
        model_types=args.models,
        experiment_name=args.experiment,
        data_path=args.data,
        limit=args.limit,
        seed=args.seed,
        cv_folds=args.cv_folds,
        n_jobs=args.n_jobs,
        save_models=not args.no_save,
        plots=not args.no_plots
    )

    try:
        trainer.train()
    except ResourceExhaustedError as e:
        logger.error("Run aborted: %s", e)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
