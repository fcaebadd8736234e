"""
Descriptive analysis of the FEVER claim corpus
Label balance, verifiability, claim length, evidence and sentiment by label
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from rich.table import Table

from .config import FIGURES_DIR, LABELS
from .data_io import LabelInvariantReport, check_label_invariant
from .utils import console


def label_distribution(df: pd.DataFrame) -> pd.DataFrame:
    """Count and share of each label, in reporting order"""
    counts = df['label'].value_counts().reindex(list(LABELS), fill_value=0)
    total = counts.sum()
    return pd.DataFrame({
        'count': counts.astype(int),
        'share': counts / total if total else counts.astype(float),
    })


def verifiability_crosstab(df: pd.DataFrame) -> pd.DataFrame:
    """Verifiable x label counts"""
    table = pd.crosstab(df['verifiable'], df['label'])
    return table.reindex(columns=list(LABELS), fill_value=0)


def length_by_label(df: pd.DataFrame) -> pd.DataFrame:
    """Summary of claim character counts per label"""
    summary = df.groupby('label')['char_count'].describe()
    return summary.reindex([label for label in LABELS if label in summary.index])


def feature_rates_by_label(df: pd.DataFrame) -> pd.DataFrame:
    """Share of claims with missing evidence / positive sentiment per label"""
    rates = df.groupby('label')[['missing_evidence', 'sentiment_positive']].mean()
    return rates.reindex([label for label in LABELS if label in rates.index])


@dataclass(frozen=True)
class EdaSummary:
    """Descriptive statistics of a claim corpus with derived features"""
    n_claims: int
    n_duplicate_claims: int
    labels: pd.DataFrame
    crosstab: pd.DataFrame
    lengths: pd.DataFrame
    rates: pd.DataFrame
    invariant: LabelInvariantReport


def describe_claims(df: pd.DataFrame) -> EdaSummary:
    """
    Compute the descriptive statistics

    Args:
        df: Claim DataFrame after derive_claim_features

    Returns:
        EdaSummary
    """
    return EdaSummary(
        n_claims=len(df),
        n_duplicate_claims=int(df['claim'].duplicated().sum()),
        labels=label_distribution(df),
        crosstab=verifiability_crosstab(df),
        lengths=length_by_label(df),
        rates=feature_rates_by_label(df),
        invariant=check_label_invariant(df),
    )


def _format_cells(frame: pd.DataFrame, float_format: str = "{:.3f}") -> List[List[str]]:
    """Rows as strings: floats through float_format, counts left as integers"""
    rows = []
    for idx, *values in frame.itertuples(name=None):
        cells = [float_format.format(v) if isinstance(v, (float, np.floating)) else str(v) for v in values]
        rows.append([str(idx)] + cells)
    return rows


def _frame_table(frame: pd.DataFrame, title: str, float_format: str = "{:.3f}") -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column(frame.index.name or "", style="cyan", no_wrap=True)
    for col in frame.columns:
        table.add_column(str(col), style="green")
    for cells in _format_cells(frame, float_format):
        table.add_row(*cells)
    return table


def display_summary(summary: EdaSummary):
    """Print the descriptive statistics"""
    console.print(f"\n[bold]Claims:[/bold] {summary.n_claims:,}  "
                  f"[bold]Duplicate claim texts:[/bold] {summary.n_duplicate_claims:,}")
    console.print(_frame_table(summary.labels, "Label Distribution"))
    console.print(_frame_table(summary.crosstab, "Verifiability x Label"))
    console.print(_frame_table(summary.lengths, "Claim Length (characters) by Label", "{:.1f}"))
    console.print(_frame_table(summary.rates, "Missing Evidence / Positive Sentiment Rate by Label"))

    if summary.invariant.holds:
        console.print("[green]✓ NOT ENOUGH INFO exactly when NOT VERIFIABLE[/green]")
    else:
        console.print(
            f"[yellow]⚠ Invariant violated: {summary.invariant.nei_but_verifiable} NEI claims marked "
            f"verifiable, {summary.invariant.not_verifiable_but_labelled} unverifiable claims with a verdict[/yellow]"
        )


def _save(fig, save_path: Optional[Path], what: str):
    fig.tight_layout()
    if save_path:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=100, bbox_inches='tight')
        console.print(f"[green]✓ {what} saved to {save_path}[/green]")
    plt.close(fig)


def plot_label_distribution(df: pd.DataFrame, save_path: Optional[Path] = None):
    """Bar chart of label counts"""
    fig, ax = plt.subplots(figsize=(8, 5))
    sns.countplot(data=df, x='label', order=list(LABELS), ax=ax)
    ax.set_xlabel('Label')
    ax.set_ylabel('Claims')
    ax.set_title('Label Distribution', fontsize=16)
    _save(fig, save_path, "Label distribution")
    return fig


def plot_length_by_label(df: pd.DataFrame, save_path: Optional[Path] = None):
    """Box plot of claim length per label"""
    fig, ax = plt.subplots(figsize=(8, 5))
    sns.boxplot(data=df, x='label', y='char_count', order=list(LABELS), ax=ax)
    ax.set_xlabel('Label')
    ax.set_ylabel('Characters')
    ax.set_title('Claim Length by Label', fontsize=16)
    _save(fig, save_path, "Claim length plot")
    return fig


def plot_verifiability_crosstab(df: pd.DataFrame, save_path: Optional[Path] = None):
    """Heatmap of verifiable x label counts"""
    fig, ax = plt.subplots(figsize=(8, 4))
    sns.heatmap(verifiability_crosstab(df), annot=True, fmt='d', cmap='Blues', ax=ax)
    ax.set_title('Verifiability x Label', fontsize=16)
    _save(fig, save_path, "Verifiability heatmap")
    return fig


def save_figures(df: pd.DataFrame, figures_dir: Path = FIGURES_DIR):
    """Write all descriptive figures"""
    plot_label_distribution(df, figures_dir / 'label_distribution.png')
    plot_length_by_label(df, figures_dir / 'claim_length_by_label.png')
    plot_verifiability_crosstab(df, figures_dir / 'verifiability_by_label.png')


def main():
    """Descriptive report for a claim file"""
    import argparse
    from .data_io import ClaimDataLoader
    from .features import LexiconSentiment, derive_claim_features
    from .utils import setup_logging

    parser = argparse.ArgumentParser(description="Describe a FEVER claim file")
    parser.add_argument('--data', type=Path, default=None,
                        help='JSONL claim file')
    parser.add_argument('--limit', type=int, default=None,
                        help='Read at most this many claims')
    parser.add_argument('--no-plots', action='store_true',
                        help='Skip writing figures')
    args = parser.parse_args()

    matplotlib.use('Agg')
    setup_logging()
    df = ClaimDataLoader(args.data, limit=args.limit).load_data()
    df = derive_claim_features(df, LexiconSentiment())

    display_summary(describe_claims(df))

    if not args.no_plots:
        save_figures(df)

    console.print("\n[bold green]✨ Descriptive analysis complete![/bold green]")


if __name__ == "__main__":
    main()
