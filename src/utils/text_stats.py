"""Sentence and word statistics used by the heuristic AI detectors."""
import re
from statistics import fmean, pstdev

_WHITESPACE = re.compile(r'\s+')
SENTENCE_PATTERN = re.compile(r'[^.!?]+[.!?]+')


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(' ', text).strip()


def split_sentences(text: str) -> list[str]:
    """Split text into sentences ending in terminal punctuation.

    A trailing fragment without terminal punctuation is not a sentence. When
    the text has no terminal punctuation at all, the whole text is returned
    as a single sentence.
    """
    clean = normalize_whitespace(text)
    sentences = [s.strip() for s in SENTENCE_PATTERN.findall(clean)]
    sentences = [s for s in sentences if s]
    return sentences or [clean]


def sentence_lengths(sentences: list[str]) -> list[int]:
    return [len(s.split()) for s in sentences]


def mean_sentence_length(lengths: list[int]) -> float:
    return fmean(lengths) if lengths else 0.0


def burstiness(lengths: list[int]) -> float:
    """Population standard deviation of sentence lengths."""
    if not lengths:
        return 0.0
    return pstdev(lengths)


def average_word_length(text: str) -> float:
    words = normalize_whitespace(text).split()
    if not words:
        return 0.0
    return sum(len(w) for w in words) / len(words)
