import pytest

from placementcracker.core.usage import TokenCounter, estimate_tokens_by_chars, estimate_tokens_by_words


def _family() -> list[str]:
    return ["cover letter " * size for size in (1, 5, 25, 125)]


def test_char_estimate_rounds_up() -> None:
    assert estimate_tokens_by_chars("") == 0
    assert estimate_tokens_by_chars("abc") == 1
    assert estimate_tokens_by_chars("abcde") == 2


def test_word_estimate_rounds_up() -> None:
    assert estimate_tokens_by_words("one two three") == 4


@pytest.mark.parametrize("method", ["chars", "words"])
def test_estimates_grow_with_input_length(method: str) -> None:
    counter = TokenCounter(method)
    counts = [counter.count(text).tokens for text in _family()]
    assert counts == sorted(counts)
    assert counts[0] < counts[-1]
    assert counter.count("x").method == method


def test_tiktoken_count_grows_with_input_length() -> None:
    counter = TokenCounter("tiktoken")
    if counter.encoding is None:
        pytest.skip("tokenizer encoding could not be loaded")

    counts = [counter.count(text).tokens for text in _family()]
    assert counts == sorted(counts)
    assert counts[0] < counts[-1]
    assert counter.count("hello").method == "tiktoken"


def test_tiktoken_falls_back_to_chars_when_encoding_missing() -> None:
    counter = TokenCounter("tiktoken", encoding_name="no-such-encoding")
    result = counter.count("abcdefgh")
    assert result.method == "chars"
    assert result.tokens == 2
