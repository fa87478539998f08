"""Per-sentence AI highlighting for the sentence display mode."""
from src.dtos.scan_dto import SegmentDTO
from src.utils.ai_phrases import find_ai_phrases
from src.utils.text_stats import SENTENCE_PATTERN, average_word_length, normalize_whitespace

_MIN_WORDS = 12
_MAX_WORDS = 28
_LONG_WORD_AVG = 5.0


def _sentence_looks_ai(sentence: str) -> bool:
    if find_ai_phrases(sentence):
        return True
    word_count = len(sentence.split())
    return _MIN_WORDS < word_count < _MAX_WORDS and average_word_length(sentence) > _LONG_WORD_AVG


def segment_sentences(text: str) -> list[SegmentDTO]:
    """Tag each sentence independently of the document-level score.

    Segments cover the whitespace-normalised input in order. Text the
    sentence pattern does not match (a leading run of punctuation, a
    trailing fragment with no terminal punctuation) becomes its own
    untagged segment, so no characters are lost.
    """
    normalized = normalize_whitespace(text)
    segments: list[SegmentDTO] = []
    cursor = 0

    def add_gap(end: int) -> None:
        gap = normalized[cursor:end].strip()
        if gap:
            segments.append(SegmentDTO(text=gap, is_ai=False))

    for match in SENTENCE_PATTERN.finditer(normalized):
        add_gap(match.start())
        sentence = match.group().strip()
        if sentence:
            segments.append(SegmentDTO(text=sentence, is_ai=_sentence_looks_ai(sentence)))
        cursor = match.end()

    if cursor == 0 and normalized:
        # no terminal punctuation at all: the whole text is one sentence
        return [SegmentDTO(text=normalized, is_ai=_sentence_looks_ai(normalized))]

    add_gap(len(normalized))
    return segments
