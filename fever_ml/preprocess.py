"""
Text preprocessing module for FEVER claim classification
Turns claim text into stemmed, stop-word-free tokens for the bag-of-words matrix
"""

import re
import unicodedata
from typing import Iterable, List, Optional, FrozenSet

import nltk
from nltk.stem import PorterStemmer
from nltk.tokenize import RegexpTokenizer

from .config import VECTORIZER_CONFIG

URL_PATTERN = re.compile(r'https?://\S+|www\.\S+|\S+\.(?:com|org|net|gov|edu)\S*')
NUMBER_PATTERN = re.compile(r'\d+')


def load_stopwords(language: str = 'english') -> FrozenSet[str]:
    """Load the NLTK stop-word list, downloading the corpus on first use"""
    try:
        nltk.data.find('corpora/stopwords')
    except LookupError:
        nltk.download('stopwords', quiet=True)

    from nltk.corpus import stopwords
    return frozenset(stopwords.words(language))


class TextPreprocessor:
    """Claim text preprocessing for bag-of-words features"""

    def __init__(
        self,
        lowercase: bool = True,
        remove_urls: bool = VECTORIZER_CONFIG['remove_urls'],
        remove_numbers: bool = VECTORIZER_CONFIG['remove_numbers'],
        remove_stopwords: bool = VECTORIZER_CONFIG['remove_stopwords'],
        stem: bool = VECTORIZER_CONFIG['stem'],
        min_token_length: int = VECTORIZER_CONFIG['min_token_length'],
        stop_words: Optional[Iterable[str]] = None
    ):
        """
        Initialize preprocessor with configuration

        Args:
            lowercase: Convert text to lowercase
            remove_urls: Remove URLs
            remove_numbers: Remove numeric values
            remove_stopwords: Remove common stopwords
            stem: Apply Porter stemming
            min_token_length: Drop tokens shorter than this
            stop_words: Stop-word list (NLTK English list when None)
        """
        self.lowercase = lowercase
        self.remove_urls = remove_urls
        self.remove_numbers = remove_numbers
        self.remove_stopwords = remove_stopwords
        self.stem = stem
        self.min_token_length = min_token_length

        # Letters only: punctuation and symbols never become tokens
        pattern = r'[^\W\d_]+' if remove_numbers else r'[^\W_]+'
        self.tokenizer = RegexpTokenizer(pattern)

        if self.remove_stopwords:
            self.stop_words = (
                frozenset(w.lower() for w in stop_words) if stop_words is not None
                else load_stopwords()
            )
        else:
            self.stop_words = frozenset()

        self.stemmer = PorterStemmer() if self.stem else None

    def clean_urls(self, text: str) -> str:
        """Remove URLs from text"""
        return URL_PATTERN.sub(' ', text)

    def clean_numbers(self, text: str) -> str:
        """Remove digit runs from text"""
        return NUMBER_PATTERN.sub(' ', text)

    def normalize_unicode(self, text: str) -> str:
        """Fold accented characters to ASCII"""
        text = unicodedata.normalize('NFKD', text)
        return text.encode('ascii', 'ignore').decode('utf-8')

    def normalize(self, text: str) -> str:
        """Clean a claim without tokenizing it"""
        if not isinstance(text, str):
            return ""

        if self.remove_urls:
            text = self.clean_urls(text)

        if self.remove_numbers:
            text = self.clean_numbers(text)

        text = self.normalize_unicode(text)

        if self.lowercase:
            text = text.lower()

        return text

    def tokenize(self, text: str) -> List[str]:
        """
        Turn a claim into its list of bag-of-words tokens

        Args:
            text: Raw claim text

        Returns:
            Tokens after stop-word removal and stemming
        """
        tokens = self.tokenizer.tokenize(self.normalize(text))

        if self.remove_stopwords:
            tokens = [t for t in tokens if t.lower() not in self.stop_words]

        if self.stemmer is not None:
            tokens = [self.stemmer.stem(t) for t in tokens]

        return [t for t in tokens if len(t) >= self.min_token_length]

    def __call__(self, text: str) -> List[str]:
        return self.tokenize(text)

    def process_text(self, text: str) -> str:
        """Space-joined tokens, for inspection and reports"""
        return ' '.join(self.tokenize(text))
