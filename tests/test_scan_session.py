"""
Test: scan lifecycle state machine and stale-run protection.
"""
import asyncio

import pytest

from src.core.exceptions import TextExtractionError
from src.dtos.scan_dto import AnalysisResultDTO, ScanResultDTO, TextInputDTO
from src.services import scan_session
from src.services.scan_session import InvalidTransitionError, ScanSession, ScanState


def _result(text):
    analysis = AnalysisResultDTO(ai_percentage=20, reasoning="r", verdict_source="statistical")
    return ScanResultDTO(extracted_text=text, analysis=analysis, suggested_grade="A", search_url="u")


class GatedScanner:
    """Scanner double whose runs finish only when their gate is opened."""

    def __init__(self):
        self.gates: dict[str, asyncio.Event] = {}
        self.session: ScanSession | None = None
        self.states_seen: list[ScanState] = []

    async def scan_text(self, text_input, mode):
        gate = self.gates.setdefault(text_input.text, asyncio.Event())
        await gate.wait()
        return _result(text_input.text)

    async def scan_image(self, image, mode, progress=None, on_extracted=None):
        self.states_seen.append(self.session.state)
        progress(10)
        if image == "unreadable":
            raise TextExtractionError()
        on_extracted("extracted words")
        self.states_seen.append(self.session.state)
        progress(95)
        return _result("extracted words")


class RecordingLogger:
    """Takes the event name positionally, like a structlog bound logger."""

    def __init__(self):
        self.records: list[tuple[str, dict]] = []

    def debug(self, event, **kw):
        self.records.append((event, kw))

    info = debug


class ExplodingScanner:
    async def scan_text(self, text_input, mode):
        raise RuntimeError("classifier crashed")


@pytest.fixture
def scanner():
    return GatedScanner()


@pytest.fixture
def session(scanner):
    session = ScanSession(scanner)
    scanner.session = session
    return session


class TestScanSession:
    def test_starts_idle(self, session):
        assert session.state is ScanState.IDLE
        assert session.result is None

    async def test_image_run_walks_through_states(self, session, scanner):
        result = await session.scan_image("photo")

        assert scanner.states_seen == [ScanState.SCANNING, ScanState.ANALYZING]
        assert session.state is ScanState.COMPLETE
        assert session.result is result
        assert session.progress == 95

    async def test_text_run_skips_scanning(self, session, scanner):
        task = asyncio.create_task(session.scan_text(TextInputDTO(text="pasted")))
        await asyncio.sleep(0)
        assert session.state is ScanState.ANALYZING

        scanner.gates["pasted"].set()
        await task
        assert session.state is ScanState.COMPLETE

    async def test_failure_returns_to_idle(self, session):
        with pytest.raises(TextExtractionError):
            await session.scan_image("unreadable")

        assert session.state is ScanState.IDLE
        assert "Could not extract text" in session.error
        assert session.result is None

    async def test_stale_run_does_not_overwrite_newer(self, session, scanner):
        old = asyncio.create_task(session.scan_text(TextInputDTO(text="old")))
        await asyncio.sleep(0)
        new = asyncio.create_task(session.scan_text(TextInputDTO(text="new")))
        await asyncio.sleep(0)

        scanner.gates["new"].set()
        assert (await new).extracted_text == "new"

        scanner.gates["old"].set()
        assert await old is None

        assert session.result.extracted_text == "new"
        assert session.state is ScanState.COMPLETE

    async def test_reset_abandons_in_flight_run(self, session, scanner):
        task = asyncio.create_task(session.scan_text(TextInputDTO(text="draft")))
        await asyncio.sleep(0)
        session.reset()

        scanner.gates["draft"].set()
        assert await task is None
        assert session.state is ScanState.IDLE
        assert session.result is None

    def test_stale_progress_ignored(self, session):
        session.current_run = 2
        session.set_progress(1, 60)
        assert session.progress == 0

    def test_publish_requires_running_state(self, session):
        session.current_run = 1
        with pytest.raises(InvalidTransitionError):
            session.publish(1, _result("x"))

    async def test_transitions_are_logged(self, session, monkeypatch):
        recorder = RecordingLogger()
        monkeypatch.setattr(scan_session, "logger", recorder)

        await session.scan_image("photo")

        transitions = [
            (kw["transition"], kw["source"], kw["target"])
            for event, kw in recorder.records
            if event == "scan_state_changed"
        ]
        assert transitions == [
            ("begin_image", "idle", "scanning"),
            ("text_extracted", "scanning", "analyzing"),
            ("complete", "analyzing", "complete"),
        ]

    def test_reset_from_idle(self, session):
        session.reset()
        assert session.state is ScanState.IDLE

    async def test_unexpected_error_returns_to_idle(self):
        session = ScanSession(ExplodingScanner())

        with pytest.raises(RuntimeError):
            await session.scan_text(TextInputDTO(text="essay"))

        assert session.state is ScanState.IDLE
        assert session.error == "classifier crashed"

