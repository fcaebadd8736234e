"""
Data I/O module for FEVER claim classification
Handles the claim schema, JSONL loading, and train/test partitioning
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, ValidationError, model_validator
from rich.console import Console
from rich.table import Table
from sklearn.model_selection import train_test_split

from .config import DEFAULT_DATASET, LABELS, RANDOM_SEED, TEST_RATIO

logger = logging.getLogger(__name__)


class SchemaError(ValueError):
    """Raised when a dataset line does not match the claim schema"""


class Label(str, Enum):
    SUPPORTS = "SUPPORTS"
    REFUTES = "REFUTES"
    NOT_ENOUGH_INFO = "NOT ENOUGH INFO"


class Verifiability(str, Enum):
    VERIFIABLE = "VERIFIABLE"
    NOT_VERIFIABLE = "NOT VERIFIABLE"


REF_FIELDS = ('annotation_id', 'evidence_id', 'wiki_page', 'sentence_id')


class EvidenceRef(BaseModel):
    """One evidence pointer; wiki_page is None for the absent-marker"""
    model_config = ConfigDict(frozen=True)

    annotation_id: Optional[int] = None
    evidence_id: Optional[int] = None
    wiki_page: Optional[str] = None
    sentence_id: Optional[int] = None

    @model_validator(mode='before')
    @classmethod
    def from_list(cls, value: Any) -> Any:
        # FEVER stores a reference as [annotation_id, evidence_id, wiki_page, sentence_id]
        if isinstance(value, (list, tuple)):
            if len(value) != len(REF_FIELDS):
                raise ValueError(f"evidence reference must be a 4-item list, got {value!r}")
            return dict(zip(REF_FIELDS, value))
        return value

    @property
    def is_absent(self) -> bool:
        return self.wiki_page is None

    def as_list(self) -> List[Any]:
        return [self.annotation_id, self.evidence_id, self.wiki_page, self.sentence_id]


# An evidence set is a tuple of references; None marks a null entry
EvidenceSet = Tuple[Optional[EvidenceRef], ...]


class ClaimRecord(BaseModel):
    """A single validated claim"""
    model_config = ConfigDict(frozen=True)

    id: Union[StrictInt, StrictStr]
    claim: StrictStr
    verifiable: Verifiability
    label: Label
    evidence: Optional[Tuple[Optional[EvidenceSet], ...]] = None

    def evidence_as_lists(self) -> Optional[List[Optional[List[Any]]]]:
        """Evidence in its JSON shape, for the claim frame"""
        if self.evidence is None:
            return None
        return [
            None if evidence_set is None
            else [None if ref is None else ref.as_list() for ref in evidence_set]
            for evidence_set in self.evidence
        ]

    def to_row(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'claim': self.claim,
            'verifiable': self.verifiable.value,
            'label': self.label.value,
            'evidence': self.evidence_as_lists(),
        }


FRAME_COLUMNS = ['id', 'claim', 'verifiable', 'label', 'evidence']


def _describe_errors(error: ValidationError) -> str:
    parts = []
    for detail in error.errors():
        field = '.'.join(str(part) for part in detail['loc']) or 'record'
        parts.append(f"{field}: {detail['msg']}")
    return '; '.join(parts)


def parse_record(obj: Any, line_no: int = 0) -> ClaimRecord:
    """
    Validate one decoded JSON object against the claim schema

    Args:
        obj: Decoded JSON value
        line_no: Source line number for error messages

    Returns:
        ClaimRecord
    """
    try:
        return ClaimRecord.model_validate(obj)
    except ValidationError as e:
        raise SchemaError(f"line {line_no}: {_describe_errors(e)}") from e


def records_to_frame(records: Sequence[ClaimRecord]) -> pd.DataFrame:
    """Build the claim DataFrame from validated records"""
    return pd.DataFrame([record.to_row() for record in records], columns=FRAME_COLUMNS)


class ClaimDataLoader:
    """Loader for FEVER-style JSONL claim files"""

    def __init__(self, path: Optional[Path] = None, limit: Optional[int] = None):
        """
        Initialize data loader

        Args:
            path: JSONL file with one claim per line
            limit: Read at most this many records (None for all)
        """
        self.path = Path(path) if path is not None else DEFAULT_DATASET
        self.limit = limit
        self.console = Console()

    def load_records(self) -> List[ClaimRecord]:
        """
        Read and validate every record in the file

        Returns:
            List of ClaimRecord in file order
        """
        if not self.path.exists():
            raise FileNotFoundError(
                f"Dataset not found: {self.path}\n"
                "Run: python download_data.py --dataset train"
            )

        records = []
        seen_ids = set()

        with open(self.path, 'r', encoding='utf-8') as f:
            for line_no, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError as e:
                    raise SchemaError(f"line {line_no}: invalid JSON ({e.msg})") from e

                record = parse_record(obj, line_no)
                if record.id in seen_ids:
                    raise SchemaError(f"line {line_no}: duplicate id {record.id!r}")
                seen_ids.add(record.id)
                records.append(record)

                if self.limit is not None and len(records) >= self.limit:
                    break

        self.console.print(f"✓ Loaded {len(records):,} claims from {self.path.name}")
        return records

    def load_data(self) -> pd.DataFrame:
        """
        Load the dataset as a DataFrame

        Returns:
            DataFrame with columns id, claim, verifiable, label, evidence
        """
        self.console.print(f"\n[bold cyan]Loading claims from {self.path}...[/bold cyan]")
        return records_to_frame(self.load_records())

    def display_split_statistics(self, y_train: np.ndarray, y_test: np.ndarray):
        """Display label counts per partition"""

        table = Table(title="Data Split Statistics", show_header=True, header_style="bold magenta")
        table.add_column("Split", style="cyan", no_wrap=True)
        table.add_column("Total", style="green")
        for label in LABELS:
            table.add_column(label, style="yellow")

        for name, y in [("Train", y_train), ("Test", y_test)]:
            counts = pd.Series(y).value_counts()
            table.add_row(name, str(len(y)), *[str(int(counts.get(label, 0))) for label in LABELS])

        self.console.print(table)


@dataclass(frozen=True)
class LabelInvariantReport:
    """Outcome of checking NOT ENOUGH INFO <=> NOT VERIFIABLE"""
    n_records: int
    nei_but_verifiable: int
    not_verifiable_but_labelled: int

    @property
    def holds(self) -> bool:
        return self.nei_but_verifiable == 0 and self.not_verifiable_but_labelled == 0


def check_label_invariant(df: pd.DataFrame) -> LabelInvariantReport:
    """
    Check that a claim is NOT ENOUGH INFO exactly when it is NOT VERIFIABLE

    The dataset is expected to satisfy this; violations are reported, not fixed.
    """
    is_nei = df['label'] == Label.NOT_ENOUGH_INFO.value
    not_verifiable = df['verifiable'] == Verifiability.NOT_VERIFIABLE.value

    report = LabelInvariantReport(
        n_records=len(df),
        nei_but_verifiable=int((is_nei & ~not_verifiable).sum()),
        not_verifiable_but_labelled=int((~is_nei & not_verifiable).sum()),
    )
    if not report.holds:
        logger.warning(
            "Label/verifiability invariant violated: %d NEI claims marked verifiable, "
            "%d unverifiable claims with a verdict",
            report.nei_but_verifiable, report.not_verifiable_but_labelled
        )
    return report


@dataclass(frozen=True)
class DataSplit:
    """Fixed train/test partition of a predictor matrix and label vector"""
    X_train: Any
    X_test: Any
    y_train: np.ndarray
    y_test: np.ndarray
    train_index: np.ndarray
    test_index: np.ndarray

    @property
    def n_rows(self) -> int:
        return len(self.train_index) + len(self.test_index)


def partition_indices(
    n_rows: int,
    test_ratio: float = TEST_RATIO,
    seed: int = RANDOM_SEED,
    stratify_labels: Optional[np.ndarray] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Randomly assign every row index to exactly one of train and test

    Args:
        n_rows: Number of rows
        test_ratio: Proportion of rows held out
        seed: Random seed
        stratify_labels: Labels whose proportions both parts should keep

    Returns:
        Tuple of (train_index, test_index)
    """
    train_index, test_index = train_test_split(
        np.arange(n_rows),
        test_size=test_ratio,
        random_state=seed,
        stratify=stratify_labels
    )
    return train_index, test_index


def split_rows(X, y: np.ndarray, train_index: np.ndarray, test_index: np.ndarray) -> DataSplit:
    """Cut a predictor matrix and label vector along given row indices"""
    y = np.asarray(y)
    if X.shape[0] != len(y):
        raise ValueError(f"X has {X.shape[0]} rows but y has {len(y)} labels")

    return DataSplit(
        X_train=X[train_index],
        X_test=X[test_index],
        y_train=y[train_index],
        y_test=y[test_index],
        train_index=train_index,
        test_index=test_index,
    )


def train_test_partition(
    X,
    y: np.ndarray,
    test_ratio: float = TEST_RATIO,
    seed: int = RANDOM_SEED,
    stratify: bool = False
) -> DataSplit:
    """
    Split rows once into train and test

    Args:
        X: Predictor matrix (dense or sparse), rows aligned with y
        y: Label vector
        test_ratio: Proportion of rows held out
        seed: Random seed
        stratify: Preserve label proportions in both parts

    Returns:
        DataSplit
    """
    y = np.asarray(y)
    train_index, test_index = partition_indices(
        len(y), test_ratio, seed, stratify_labels=y if stratify else None
    )
    return split_rows(X, y, train_index, test_index)
