"""
Per-request scan lifecycle.

The pipeline itself is a pure function of its input. ``ScanSession`` layers
the Idle -> Scanning -> Analyzing -> Complete lifecycle on top and makes sure
a result from an abandoned run never replaces the result of a newer one.
"""

import itertools
from collections.abc import Awaitable, Callable
from enum import Enum

from src.core.exceptions import ScannerError
from src.core.logging import get_logger
from src.dtos.scan_dto import ImageInputDTO, ScanResultDTO, SegmentationMode, TextInputDTO
from src.services.scanner_service import ScannerService

logger = get_logger(__name__)


class ScanState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    ANALYZING = "analyzing"
    COMPLETE = "complete"


class InvalidTransitionError(ScannerError):
    """The requested event is not allowed in the current state."""


# event -> (allowed source states, target state)
_TRANSITIONS: dict[str, tuple[frozenset[ScanState], ScanState]] = {
    "begin_image": (frozenset(ScanState), ScanState.SCANNING),
    "begin_text": (frozenset(ScanState), ScanState.ANALYZING),
    "text_extracted": (frozenset({ScanState.SCANNING}), ScanState.ANALYZING),
    "complete": (frozenset({ScanState.SCANNING, ScanState.ANALYZING}), ScanState.COMPLETE),
    "fail": (frozenset({ScanState.SCANNING, ScanState.ANALYZING}), ScanState.IDLE),
    "reset": (frozenset(ScanState), ScanState.IDLE),
}


class ScanSession:
    """Holds the state of one user's scanner and publishes the latest run only."""

    def __init__(self, scanner: ScannerService) -> None:
        self._scanner = scanner
        self._run_ids = itertools.count(1)
        self.current_run: int | None = None
        self.state = ScanState.IDLE
        self.progress = 0
        self.result: ScanResultDTO | None = None
        self.error: str | None = None

    def _fire(self, event: str) -> None:
        sources, target = _TRANSITIONS[event]
        if self.state not in sources:
            raise InvalidTransitionError(f"Cannot {event} while {self.state.value}")
        logger.debug("scan_state_changed", transition=event, source=self.state.value, target=target.value)
        self.state = target

    def _begin(self, event: str) -> int:
        run_id = next(self._run_ids)
        self.current_run = run_id
        self.result = None
        self.error = None
        self.progress = 0
        self._fire(event)
        return run_id

    def is_current(self, run_id: int) -> bool:
        return run_id == self.current_run

    def set_progress(self, run_id: int, value: int) -> None:
        if self.is_current(run_id):
            self.progress = value

    def publish(self, run_id: int, result: ScanResultDTO) -> bool:
        """Store ``result`` unless a newer run has started since ``run_id``."""
        if not self.is_current(run_id):
            logger.info("stale_scan_result_dropped", run_id=run_id, current_run=self.current_run)
            return False
        self._fire("complete")
        self.result = result
        return True

    def publish_failure(self, run_id: int, message: str) -> bool:
        if not self.is_current(run_id):
            return False
        self._fire("fail")
        self.error = message
        return True

    def reset(self) -> None:
        self.current_run = None
        self.result = None
        self.error = None
        self.progress = 0
        self._fire("reset")

    async def scan_image(
        self,
        image: ImageInputDTO,
        mode: SegmentationMode = SegmentationMode.DOCUMENT,
    ) -> ScanResultDTO | None:
        run_id = self._begin("begin_image")

        def on_progress(value: int) -> None:
            self.set_progress(run_id, value)

        def on_extracted(_text: str) -> None:
            if self.is_current(run_id):
                self._fire("text_extracted")

        return await self._run(
            run_id,
            lambda: self._scanner.scan_image(
                image, mode, progress=on_progress, on_extracted=on_extracted
            ),
        )

    async def scan_text(
        self,
        text_input: TextInputDTO,
        mode: SegmentationMode = SegmentationMode.DOCUMENT,
    ) -> ScanResultDTO | None:
        run_id = self._begin("begin_text")
        return await self._run(run_id, lambda: self._scanner.scan_text(text_input, mode))

    async def _run(
        self,
        run_id: int,
        pipeline: Callable[[], Awaitable[ScanResultDTO]],
    ) -> ScanResultDTO | None:
        try:
            result = await pipeline()
        except Exception as e:
            self.publish_failure(run_id, str(e) or type(e).__name__)
            raise
        return result if self.publish(run_id, result) else None
