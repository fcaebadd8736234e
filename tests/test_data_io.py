"""
Tests for the claim schema, JSONL loading and partitioning
"""

import json

import numpy as np
import pandas as pd
import pytest
from pydantic import ValidationError
from scipy.sparse import csr_matrix

from fever_ml.data_io import (
    ClaimDataLoader,
    EvidenceRef,
    Label,
    SchemaError,
    Verifiability,
    check_label_invariant,
    parse_record,
    partition_indices,
    records_to_frame,
    split_rows,
    train_test_partition,
)


class TestParseRecord:
    """Tests for schema validation of a single record"""

    def test_valid_record(self, toy_records):
        """Test that a well-formed record parses into typed fields"""
        record = parse_record(toy_records[0], line_no=1)
        assert record.id == 1
        assert record.label is Label.SUPPORTS
        assert record.verifiable is Verifiability.VERIFIABLE
        assert record.evidence[0][0] == EvidenceRef(annotation_id=1, evidence_id=11,
                                                   wiki_page="Roman_Atwood", sentence_id=1)

    def test_absent_marker(self, toy_records):
        """Test that the NEI sentinel parses as an absent reference"""
        record = parse_record(toy_records[6], line_no=7)
        assert record.evidence[0][0].is_absent

    def test_evidence_optional(self, toy_records):
        """Test that a record without evidence is accepted"""
        raw = toy_records[0]
        del raw['evidence']
        assert parse_record(raw).evidence is None

    @pytest.mark.parametrize("field", ["id", "claim", "verifiable", "label"])
    def test_missing_field(self, toy_records, field):
        """Test that every required field is enforced"""
        raw = toy_records[0]
        del raw[field]
        with pytest.raises(SchemaError, match=field):
            parse_record(raw, line_no=3)

    def test_unknown_label(self, toy_records):
        """Test that labels outside the vocabulary are rejected"""
        raw = dict(toy_records[0], label="MAYBE")
        with pytest.raises(SchemaError, match="label"):
            parse_record(raw)

    def test_bad_id_type(self, toy_records):
        """Test that boolean ids are rejected"""
        with pytest.raises(SchemaError, match="id"):
            parse_record(dict(toy_records[0], id=True))

    def test_bad_reference_shape(self, toy_records):
        """Test that evidence references must have four items"""
        with pytest.raises(SchemaError, match="4-item"):
            parse_record(dict(toy_records[0], evidence=[[[1, 2, "Page"]]]))

    def test_not_an_object(self):
        """Test that non-object lines are rejected"""
        with pytest.raises(SchemaError):
            parse_record(["not", "a", "record"])

    def test_record_frozen(self, toy_records):
        """Test that validated records cannot be modified"""
        record = parse_record(toy_records[0])
        with pytest.raises(ValidationError):
            record.label = Label.REFUTES

    def test_frame_evidence_shape(self, toy_records):
        """Test that the frame keeps evidence in its JSON list shape"""
        frame = records_to_frame([parse_record(raw) for raw in toy_records])
        assert frame.loc[0, 'evidence'] == toy_records[0]['evidence']
        assert frame.loc[6, 'evidence'][0][0][2] is None


class TestClaimDataLoader:
    """Tests for ClaimDataLoader"""

    def test_load_data(self, toy_jsonl):
        """Test loading the toy corpus into a frame"""
        df = ClaimDataLoader(toy_jsonl).load_data()
        assert len(df) == 8
        assert list(df.columns) == ['id', 'claim', 'verifiable', 'label', 'evidence']
        assert df['label'].value_counts().to_dict() == {
            'SUPPORTS': 3, 'REFUTES': 3, 'NOT ENOUGH INFO': 2
        }

    def test_limit(self, toy_jsonl):
        """Test that limit stops reading early"""
        assert len(ClaimDataLoader(toy_jsonl, limit=3).load_records()) == 3

    def test_blank_lines_skipped(self, tmp_path, toy_records):
        """Test that blank lines are ignored"""
        path = tmp_path / "gaps.jsonl"
        path.write_text(json.dumps(toy_records[0]) + "\n\n" + json.dumps(toy_records[1]) + "\n")
        assert len(ClaimDataLoader(path).load_records()) == 2

    def test_duplicate_id(self, jsonl_writer, toy_records):
        """Test that duplicate ids are rejected with the line number"""
        path = jsonl_writer("dup.jsonl", [toy_records[0], dict(toy_records[1], id=1)])
        with pytest.raises(SchemaError, match="line 2: duplicate id"):
            ClaimDataLoader(path).load_records()

    def test_invalid_json(self, tmp_path):
        """Test that malformed lines raise SchemaError"""
        path = tmp_path / "broken.jsonl"
        path.write_text('{"id": 1, "claim": \n')
        with pytest.raises(SchemaError, match="line 1"):
            ClaimDataLoader(path).load_records()

    def test_missing_file(self, tmp_path):
        """Test that a missing dataset is reported"""
        with pytest.raises(FileNotFoundError):
            ClaimDataLoader(tmp_path / "nope.jsonl").load_records()


class TestLabelInvariant:
    """Tests for the NOT ENOUGH INFO <=> NOT VERIFIABLE check"""

    def test_holds_on_toy_corpus(self, toy_jsonl):
        """Test that the toy corpus satisfies the invariant"""
        report = check_label_invariant(ClaimDataLoader(toy_jsonl).load_data())
        assert report.holds
        assert report.n_records == 8

    def test_violations_counted(self, toy_records):
        """Test that both directions of violation are counted"""
        toy_records[0]['verifiable'] = 'NOT VERIFIABLE'
        toy_records[6]['verifiable'] = 'VERIFIABLE'
        df = records_to_frame([parse_record(r) for r in toy_records])

        report = check_label_invariant(df)
        assert not report.holds
        assert report.nei_but_verifiable == 1
        assert report.not_verifiable_but_labelled == 1

    def test_violations_not_fixed(self, toy_records):
        """Test that the frame is left unchanged"""
        toy_records[0]['verifiable'] = 'NOT VERIFIABLE'
        df = records_to_frame([parse_record(r) for r in toy_records])
        before = df.copy()
        check_label_invariant(df)
        pd.testing.assert_frame_equal(df, before)


class TestPartition:
    """Tests for the train/test partition"""

    def test_toy_sizes(self):
        """Test that 8 rows split 75/25 into 6 and 2"""
        train_index, test_index = partition_indices(8, test_ratio=0.25, seed=42)
        assert len(train_index) == 6
        assert len(test_index) == 2

    @pytest.mark.parametrize("n_rows", [8, 31, 100])
    def test_strict_partition(self, n_rows):
        """Test that every row lands in exactly one part"""
        train_index, test_index = partition_indices(n_rows, seed=7)
        assert not set(train_index) & set(test_index)
        assert sorted(np.concatenate([train_index, test_index])) == list(range(n_rows))

    def test_reproducible(self):
        """Test that the same seed gives the same partition"""
        first = partition_indices(50, seed=42)
        second = partition_indices(50, seed=42)
        np.testing.assert_array_equal(first[0], second[0])
        np.testing.assert_array_equal(first[1], second[1])

    def test_split_rows_sparse(self):
        """Test that sparse rows follow their labels"""
        X = csr_matrix(np.arange(16).reshape(8, 2))
        y = np.array(list("abcdefgh"))
        split = train_test_partition(X, y, seed=42)

        assert split.n_rows == 8
        assert split.X_train.shape == (6, 2)
        for row, label in zip(split.X_test.toarray(), split.y_test):
            assert row[0] // 2 == "abcdefgh".index(label)

    def test_stratified(self):
        """Test that stratification keeps both classes in the test part"""
        y = np.array(['a'] * 12 + ['b'] * 4)
        split = train_test_partition(np.zeros((16, 1)), y, stratify=True)
        assert set(split.y_test) == {'a', 'b'}

    def test_row_mismatch(self):
        """Test that misaligned X and y are rejected"""
        with pytest.raises(ValueError):
            split_rows(np.zeros((3, 1)), np.array([1, 2]), np.array([0]), np.array([1]))
