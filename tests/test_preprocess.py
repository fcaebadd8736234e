"""
Tests for text preprocessing module
"""

import pytest

from fever_ml.preprocess import TextPreprocessor


@pytest.fixture
def preprocessor(stop_words):
    return TextPreprocessor(stop_words=stop_words)


class TestTextPreprocessor:
    """Tests for TextPreprocessor class"""

    def test_init_default(self, preprocessor):
        """Test default initialization"""
        assert preprocessor.lowercase is True
        assert preprocessor.remove_urls is True
        assert preprocessor.remove_numbers is True
        assert preprocessor.stemmer is not None

    def test_clean_urls(self, preprocessor):
        """Test URL removal"""
        text = "Check this link https://example.com for more info"
        result = preprocessor.clean_urls(text)
        assert "https://" not in result
        assert "example.com" not in result

    def test_clean_numbers(self, preprocessor):
        """Test digit removal"""
        assert preprocessor.clean_numbers("Released in 1957 and 2004").split() == ["Released", "in", "and"]

    def test_punctuation_dropped(self, preprocessor):
        """Test that punctuation never becomes a token"""
        tokens = preprocessor.tokenize("Celtics, Garden! (Boston) -- TD?")
        assert all(token.isalpha() for token in tokens)

    def test_stop_words_removed(self, preprocessor):
        """Test stop-word removal"""
        tokens = preprocessor.tokenize("The novel is about the sea")
        assert "the" not in tokens
        assert "is" not in tokens

    def test_stemming(self, preprocessor):
        """Test that inflections merge to one stem"""
        assert preprocessor.tokenize("played") == preprocessor.tokenize("playing")

    def test_lowercase(self, preprocessor):
        """Test lowercase conversion"""
        assert preprocessor.tokenize("BOSTON") == preprocessor.tokenize("boston")

    def test_numbers_kept(self, stop_words):
        """Test that digits survive when number removal is off"""
        keep = TextPreprocessor(remove_numbers=False, stop_words=stop_words)
        assert "1957" in keep.tokenize("Published in 1957")

    def test_no_stemming(self, stop_words):
        """Test that tokens are left whole without stemming"""
        plain = TextPreprocessor(stem=False, stop_words=stop_words)
        assert plain.tokenize("Celtics playing games") == ["celtics", "playing", "games"]

    def test_empty_string(self, preprocessor):
        """Test handling of empty string"""
        assert preprocessor.tokenize("") == []

    def test_none_handling(self, preprocessor):
        """Test that None is handled gracefully"""
        assert preprocessor.normalize(None) == ""
        assert preprocessor.tokenize(None) == []

    def test_unicode_handling(self, preprocessor):
        """Test Unicode text handling"""
        result = preprocessor.normalize_unicode("Beyoncé and Motörhead")
        assert result == "Beyonce and Motorhead"

    def test_callable_as_analyzer(self, preprocessor):
        """Test that the instance works as a vectorizer analyzer"""
        assert preprocessor("Roman Atwood creates videos") == preprocessor.tokenize("Roman Atwood creates videos")

    def test_process_text(self, preprocessor):
        """Test space-joined output"""
        assert preprocessor.process_text("Boston Celtics") == "boston celtic"
