"""AI-likelihood estimation: phrase patterns, sentence statistics, remote classifiers."""
import asyncio

import httpx

from src.core.config import Config
from src.core.logging import get_logger
from src.dtos.scan_dto import AnalysisResultDTO, SegmentationMode, SegmentDTO, VerdictDTO
from src.utils.ai_phrases import AI_PHRASES, find_ai_phrases
from src.utils.sentence_segmenter import segment_sentences
from src.utils.text_stats import (
    average_word_length,
    burstiness,
    mean_sentence_length,
    sentence_lengths,
    split_sentences,
)

logger = get_logger(__name__)

_AI_THRESHOLD = 50
_SCORE_FLOOR_BELOW = 10
_SCORE_FLOOR = 15
_SCORE_CEILING = 99


class PatternDetector:
    """Flags assistant-style vocabulary. Abstains when nothing matches."""

    source = "pattern"

    def __init__(self, phrases: tuple[str, ...] = AI_PHRASES) -> None:
        self._phrases = phrases

    def detect(self, text: str) -> VerdictDTO | None:
        found = find_ai_phrases(text, self._phrases)
        if not found:
            return None

        score = 98 if len(found) > 1 else 65
        quoted = '", "'.join(found[:3])
        return VerdictDTO(
            score=score,
            reason=f'Detected AI-typical phrasing: "{quoted}"',
            source=self.source,
        )


class StatisticalDetector:
    """Scores structural regularity of the text.

    Tuned to over-flag: it starts from a skeptical base of 20 and always
    returns a verdict, so it backs the resolver when the other detectors
    abstain.
    """

    source = "statistical"

    _BASE_SCORE = 20

    def detect(self, text: str) -> VerdictDTO:
        lengths = sentence_lengths(split_sentences(text))
        avg_len = mean_sentence_length(lengths)
        spread = burstiness(lengths)
        avg_word_len = average_word_length(text)

        score = self._BASE_SCORE
        reasons: list[str] = []

        # Assistant sentences cluster around 15-25 words
        if 12 < avg_len < 28:
            score += 20
            reasons.append("Average sentence length matches AI patterns.")

        if spread < 6:
            score += 55
            reasons.append("Sentence structure is unnaturally uniform (Robotic).")
        elif spread < 12:
            score += 30
            reasons.append("Lacks human-like variation in sentence length.")

        if avg_word_len > 5:
            score += 10

        return VerdictDTO(
            score=min(score, 100),
            reason=" ".join(reasons) or "Text seems robotic.",
            source=self.source,
        )


class RemoteEnsembleDetector:
    """Asks two hosted RoBERTa classifiers and keeps the more confident one."""

    source = "remote_ensemble"

    def __init__(self, config: Config, client: httpx.AsyncClient) -> None:
        self._config = config
        self._client = client
        # (display name, endpoint, labels meaning "AI")
        self._classifiers: list[tuple[str, str, tuple[str, ...]]] = [
            ("RoBERTa Model", config.general_classifier_url, ("Fake",)),
            ("ChatGPT Detector", config.chatgpt_classifier_url, ("ChatGPT", "Fake")),
        ]

    async def _classify(self, url: str, text: str) -> list[dict]:
        response = await self._client.post(
            url,
            json={"inputs": text},
            headers=self._config.hf_headers,
        )
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _ai_probability(payload: object, labels: tuple[str, ...]) -> float:
        """Pull the score of the first AI label out of ``[[{label, score}]]``."""
        if not isinstance(payload, list) or not payload:
            return 0.0
        entries = payload[0] if isinstance(payload[0], list) else payload
        for entry in entries:
            if isinstance(entry, dict) and entry.get("label") in labels:
                score = entry.get("score")
                if isinstance(score, (int, float)):
                    return float(score)
        return 0.0

    async def detect(self, text: str) -> VerdictDTO | None:
        snippet = text[: self._config.classifier_max_chars]
        responses = await asyncio.gather(
            *(self._classify(url, snippet) for _, url, _ in self._classifiers),
            return_exceptions=True,
        )

        best_score = 0.0
        best_source = ""
        for (name, _, labels), payload in zip(self._classifiers, responses):
            if isinstance(payload, BaseException):
                logger.warning(
                    "remote_classifier_failed",
                    classifier=name,
                    error=str(payload),
                    error_type=type(payload).__name__,
                )
                continue

            probability = self._ai_probability(payload, labels)
            if probability > best_score:
                best_score = probability
                best_source = name

        if best_score > 0.5:
            logger.debug("remote_classifier_flagged", classifier=best_source, probability=best_score)
            return VerdictDTO(
                score=round(best_score * 100),
                reason="Deep Learning analysis flagged AI patterns.",
                source=best_source,
            )
        return None


class ScoreResolver:
    """Accuser-wins resolution of detector verdicts into one result."""

    def resolve(
        self,
        text: str,
        pattern: VerdictDTO | None,
        statistical: VerdictDTO,
        remote: VerdictDTO | None = None,
        mode: SegmentationMode = SegmentationMode.DOCUMENT,
    ) -> AnalysisResultDTO:
        if pattern is not None and pattern.score > _AI_THRESHOLD:
            winner = pattern
        elif remote is not None and remote.score > statistical.score:
            winner = remote
        else:
            winner = statistical

        score = clamp_score(winner.score)

        if mode is SegmentationMode.SENTENCE:
            segments = segment_sentences(text)
        else:
            segments = [SegmentDTO(text=text, is_ai=score > _AI_THRESHOLD)]

        return AnalysisResultDTO(
            ai_percentage=score,
            reasoning=winner.reason,
            verdict_source=winner.source,
            segments=segments,
        )


def clamp_score(score: int) -> int:
    """Nothing is 0% AI, and nothing is certain."""
    if score < _SCORE_FLOOR_BELOW:
        score = _SCORE_FLOOR
    if score > _SCORE_CEILING:
        score = _SCORE_CEILING
    return score


class DetectionService:
    """Runs every detector on a text and resolves their verdicts."""

    def __init__(
        self,
        pattern: PatternDetector,
        statistical: StatisticalDetector,
        remote: RemoteEnsembleDetector,
        resolver: ScoreResolver,
    ) -> None:
        self._pattern = pattern
        self._statistical = statistical
        self._remote = remote
        self._resolver = resolver

    async def analyze(
        self,
        text: str,
        mode: SegmentationMode = SegmentationMode.DOCUMENT,
    ) -> AnalysisResultDTO:
        pattern = self._pattern.detect(text)
        remote = await self._remote.detect(text)
        statistical = self._statistical.detect(text)

        result = self._resolver.resolve(text, pattern, statistical, remote, mode)
        logger.info(
            "text_analyzed",
            ai_percentage=result.ai_percentage,
            verdict_source=result.verdict_source,
            pattern_score=pattern.score if pattern else None,
            remote_score=remote.score if remote else None,
            statistical_score=statistical.score,
        )
        return result
