"""
Shared fixtures: a toy claim corpus and offline stand-ins for the NLTK corpora
"""

import json

import matplotlib
import pytest
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

from fever_ml.features import LexiconSentiment, create_feature_extractor

matplotlib.use('Agg')

NEI_EVIDENCE = [[[101, None, None, None]]]

TOY_CLAIMS = [
    {"id": 1, "verifiable": "VERIFIABLE", "label": "SUPPORTS",
     "claim": "Roman Atwood is a great content creator.",
     "evidence": [[[1, 11, "Roman_Atwood", 1]]]},
    {"id": 2, "verifiable": "VERIFIABLE", "label": "SUPPORTS",
     "claim": "The Boston Celtics play their home games at TD Garden.",
     "evidence": [[[2, 12, "Boston_Celtics", 3]]]},
    {"id": 3, "verifiable": "VERIFIABLE", "label": "SUPPORTS",
     "claim": "Homeland is an American television spy thriller.",
     "evidence": [[[3, 13, "Homeland_(TV_series)", 0]], [[3, 14, "Spy_fiction", 2]]]},
    {"id": 4, "verifiable": "VERIFIABLE", "label": "REFUTES",
     "claim": "Adrienne Bailon is a terrible accountant.",
     "evidence": [[[4, 15, "Adrienne_Bailon", 0]]]},
    {"id": 5, "verifiable": "VERIFIABLE", "label": "REFUTES",
     "claim": "Stranger Things is set in Bloomington, Indiana.",
     "evidence": [[[5, 16, "Stranger_Things", 5]]]},
    {"id": 6, "verifiable": "VERIFIABLE", "label": "REFUTES",
     "claim": "Ayn Rand never wrote a novel in 1957.",
     "evidence": [[[6, 17, "Ayn_Rand", 1]]]},
    {"id": 7, "verifiable": "NOT VERIFIABLE", "label": "NOT ENOUGH INFO",
     "claim": "System of a Down briefly disbanded in limbo.",
     "evidence": NEI_EVIDENCE},
    {"id": 8, "verifiable": "NOT VERIFIABLE", "label": "NOT ENOUGH INFO",
     "claim": "Tetris has sold millions of physical copies.",
     "evidence": [[[108, None, None, None]]]},
]

TEST_LEXICON = {
    "great": 1, "good": 1, "best": 1, "love": 1,
    "terrible": -1, "bad": -1, "worst": -1, "disbanded": -1,
}

SUBJECTS = ["river", "castle", "singer", "novel", "village", "bridge",
            "painter", "island", "festival", "engine"]


def write_jsonl(path, records):
    """Write records as one JSON object per line"""
    with open(path, 'w', encoding='utf-8') as f:
        for record in records:
            f.write(json.dumps(record) + '\n')
    return path


@pytest.fixture
def jsonl_writer(tmp_path):
    """Write records to a named JSONL file under tmp_path"""
    return lambda name, records: write_jsonl(tmp_path / name, records)


@pytest.fixture
def toy_records():
    """The eight-claim corpus: 3 SUPPORTS, 3 REFUTES, 2 NOT ENOUGH INFO"""
    return [dict(record) for record in TOY_CLAIMS]


@pytest.fixture
def toy_jsonl(tmp_path, toy_records):
    return write_jsonl(tmp_path / "toy.jsonl", toy_records)


@pytest.fixture
def stop_words():
    return sorted(ENGLISH_STOP_WORDS)


@pytest.fixture
def sentiment():
    return LexiconSentiment(lexicon=TEST_LEXICON)


@pytest.fixture
def extractor(stop_words):
    return create_feature_extractor(stop_words=stop_words)


@pytest.fixture
def offline_corpora(monkeypatch, stop_words):
    """Keep default-constructed preprocessors and scorers off the network"""
    monkeypatch.setattr("fever_ml.preprocess.load_stopwords", lambda language='english': frozenset(stop_words))
    monkeypatch.setattr("fever_ml.features.load_opinion_lexicon", lambda: dict(TEST_LEXICON))


@pytest.fixture
def separable_records():
    """
    Thirty claims whose wording tracks the label closely enough for
    a linear model or k-NN to beat chance
    """
    records = []
    for i in range(10):
        subject = SUBJECTS[i]
        records.append({
            "id": f"s{i}", "verifiable": "VERIFIABLE", "label": "SUPPORTS",
            "claim": f"The {subject} was confirmed founded documented officially.",
            "evidence": [[[i, i, f"Page_{subject}", 0]]],
        })
        records.append({
            "id": f"r{i}", "verifiable": "VERIFIABLE", "label": "REFUTES",
            "claim": f"The {subject} never existed and was fabricated falsely.",
            "evidence": [[[i, i, f"Page_{subject}", 1]]],
        })
        records.append({
            "id": f"n{i}", "verifiable": "NOT VERIFIABLE", "label": "NOT ENOUGH INFO",
            "claim": f"Rumours suggest the {subject} might possibly be haunted.",
            "evidence": [[[i, None, None, None]]],
        })
    return records
