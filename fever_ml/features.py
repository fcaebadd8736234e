"""
Feature extraction module for FEVER claim classification
Derives per-claim scalar features and builds the document-feature matrix
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

import joblib
import nltk
import numpy as np
import pandas as pd
from rich.console import Console
from scipy.sparse import csr_matrix, hstack
from sklearn.feature_extraction.text import CountVectorizer

from .config import SCALAR_FEATURES
from .data_io import Verifiability
from .preprocess import TextPreprocessor

WORD_PATTERN = re.compile(r"[a-z]+(?:[-'][a-z]+)*")


def load_opinion_lexicon() -> Dict[str, int]:
    """Bing Liu opinion lexicon from NLTK as word -> +1/-1"""
    try:
        nltk.data.find('corpora/opinion_lexicon')
    except LookupError:
        nltk.download('opinion_lexicon', quiet=True)

    from nltk.corpus import opinion_lexicon
    lexicon = {word: 1 for word in opinion_lexicon.positive()}
    lexicon.update({word: -1 for word in opinion_lexicon.negative()})
    return lexicon


class LexiconSentiment:
    """Sum of word polarities from a fixed positive/negative lexicon"""

    def __init__(self, lexicon: Optional[Mapping[str, int]] = None):
        self.lexicon = dict(lexicon) if lexicon is not None else load_opinion_lexicon()

    def score(self, text: str) -> int:
        if not isinstance(text, str):
            return 0
        return sum(self.lexicon.get(word, 0) for word in WORD_PATTERN.findall(text.lower()))

    def is_positive(self, text: str) -> bool:
        # zero counts as positive
        return self.score(text) >= 0


def is_evidence_missing(evidence: Optional[Sequence]) -> bool:
    """
    True when a claim carries no usable evidence reference

    That is the case when the field is absent or empty, or when every entry
    is the absent-marker (a null entry or a reference without a page).
    """
    if evidence is None:
        return True

    for evidence_set in evidence:
        if evidence_set is None:
            continue
        for ref in evidence_set:
            if ref is not None and ref[2] is not None:
                return False
    return True


def derive_claim_features(df: pd.DataFrame, sentiment: LexiconSentiment) -> pd.DataFrame:
    """
    Add the derived per-claim columns

    Args:
        df: Claim DataFrame (see data_io.records_to_frame)
        sentiment: Lexicon scorer

    Returns:
        New DataFrame with char_count, missing_evidence, sentiment_score,
        sentiment_positive and is_verifiable columns
    """
    scores = df['claim'].map(sentiment.score).astype(int)

    return df.assign(
        char_count=df['claim'].str.len().astype(int),
        missing_evidence=df['evidence'].map(is_evidence_missing).astype(int),
        sentiment_score=scores,
        sentiment_positive=(scores >= 0).astype(int),
        is_verifiable=(df['verifiable'] == Verifiability.VERIFIABLE.value).astype(int),
    )


class FeatureExtractor:
    """
    Bag-of-words counts over stemmed claim tokens, followed by the
    scalar claim features
    """

    def __init__(
        self,
        preprocessor: Optional[TextPreprocessor] = None,
        scalar_features: Optional[List[str]] = None,
        text_column: str = 'claim'
    ):
        """
        Initialize feature extractor

        Args:
            preprocessor: Tokenizer used as the vectorizer analyzer
            scalar_features: Derived columns appended after the term counts
            text_column: Column holding the claim text
        """
        self.preprocessor = preprocessor or TextPreprocessor()
        self.scalar_features = list(scalar_features if scalar_features is not None else SCALAR_FEATURES)
        self.text_column = text_column

        # No frequency pruning: every training token stays in the vocabulary
        self.text_vectorizer = CountVectorizer(analyzer=self.preprocessor, lowercase=False)

        self.feature_names_ = None
        self.n_features_ = None
        self.console = Console()

    @property
    def is_fitted(self) -> bool:
        return hasattr(self.text_vectorizer, 'vocabulary_')

    def extract_scalar_features(self, df: pd.DataFrame) -> np.ndarray:
        """Scalar feature block as a float matrix"""
        missing = [col for col in self.scalar_features if col not in df.columns]
        if missing:
            raise KeyError(f"Derived feature columns missing: {missing}. Run derive_claim_features first.")
        return df[self.scalar_features].to_numpy(dtype=float)

    def fit(self, df: pd.DataFrame, y: Optional[np.ndarray] = None):
        """
        Fix the vocabulary from the training claims

        Args:
            df: Training DataFrame
            y: Target labels (unused)

        Returns:
            self
        """
        self.console.print("[cyan]Fitting claim vectorizer...[/cyan]")
        self.text_vectorizer.fit(df[self.text_column].fillna(''))
        self._update_feature_names()
        self.console.print(f"[green]✓ Vocabulary fitted: {len(self.text_vectorizer.vocabulary_):,} terms[/green]")
        return self

    def transform(self, df: pd.DataFrame) -> csr_matrix:
        """
        Transform claims into the predictor matrix

        Args:
            df: DataFrame with claim text and derived columns

        Returns:
            Sparse matrix of term counts followed by scalar features
        """
        if not self.is_fitted:
            raise RuntimeError("Feature extractor must be fitted before transform!")

        text_features = self.text_vectorizer.transform(df[self.text_column].fillna(''))
        features = [text_features]

        if self.scalar_features:
            features.append(csr_matrix(self.extract_scalar_features(df)))

        X = hstack(features, format='csr') if len(features) > 1 else text_features.tocsr()
        self.n_features_ = X.shape[1]
        return X

    def fit_transform(self, df: pd.DataFrame, y: Optional[np.ndarray] = None) -> csr_matrix:
        """Fit and transform in one step"""
        self.fit(df, y)
        return self.transform(df)

    def _update_feature_names(self):
        """Update feature names after fitting"""
        feature_names = [f"text_{name}" for name in self.text_vectorizer.get_feature_names_out()]
        feature_names.extend(f"meta_{name}" for name in self.scalar_features)
        self.feature_names_ = feature_names

    def get_feature_names(self) -> List[str]:
        """Get feature names"""
        if self.feature_names_ is None:
            self._update_feature_names()
        return self.feature_names_

    def get_top_terms(self, X: csr_matrix, top_k: int = 20) -> List[tuple]:
        """Most frequent vocabulary terms in a predictor matrix"""
        n_terms = len(self.text_vectorizer.vocabulary_)
        totals = np.asarray(X[:, :n_terms].sum(axis=0)).ravel()
        order = totals.argsort()[::-1][:top_k]
        names = self.text_vectorizer.get_feature_names_out()
        return [(names[i], int(totals[i])) for i in order]

    def save(self, path: Path):
        """
        Save only picklable state, leaving out the console.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        state = {
            "preprocessor": self.preprocessor,
            "scalar_features": self.scalar_features,
            "text_column": self.text_column,
            "text_vectorizer": self.text_vectorizer,
            "feature_names_": self.feature_names_,
            "n_features_": self.n_features_,
        }
        joblib.dump(state, path)
        self.console.print(f"[green]✓ Feature extractor saved to {path}[/green]")

    @classmethod
    def load(cls, path: Path):
        """
        Reconstruct FeatureExtractor from saved state.
        """
        state = joblib.load(path)

        obj = cls(
            preprocessor=state["preprocessor"],
            scalar_features=state["scalar_features"],
            text_column=state["text_column"],
        )
        obj.text_vectorizer = state["text_vectorizer"]
        obj.feature_names_ = state.get("feature_names_")
        obj.n_features_ = state.get("n_features_")
        return obj


@dataclass(frozen=True)
class DesignMatrix:
    """Predictor matrix with its labels, column names and claim ids"""
    X: csr_matrix
    y: np.ndarray
    feature_names: List[str]
    ids: np.ndarray

    @property
    def shape(self) -> tuple:
        return self.X.shape


def create_feature_extractor(
    stop_words: Optional[Sequence[str]] = None,
    scalar_features: Optional[List[str]] = None
) -> FeatureExtractor:
    """Create the claim feature extractor with the default configuration"""
    preprocessor = TextPreprocessor(stop_words=stop_words)
    return FeatureExtractor(preprocessor=preprocessor, scalar_features=scalar_features)


def build_design_matrix(df: pd.DataFrame, extractor: FeatureExtractor) -> DesignMatrix:
    """
    Predictor matrix for every claim using an already fitted extractor

    Args:
        df: Claim DataFrame after derive_claim_features
        extractor: Fitted FeatureExtractor

    Returns:
        DesignMatrix
    """
    return DesignMatrix(
        X=extractor.transform(df),
        y=df['label'].to_numpy(),
        feature_names=list(extractor.get_feature_names()),
        ids=df['id'].to_numpy(),
    )
