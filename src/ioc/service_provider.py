"""
Service provider for dependency injection.

This module provides all service dependencies.
"""

from collections.abc import AsyncIterable

import httpx
from dishka import Provider, Scope, from_context, provide

from src.core.config import Config
from src.services.detection_service import (
    DetectionService,
    PatternDetector,
    RemoteEnsembleDetector,
    ScoreResolver,
    StatisticalDetector,
)
from src.services.extraction_service import (
    ExtractionService,
    HandwritingOCRStrategy,
    OCRSpaceStrategy,
    TesseractStrategy,
)
from src.services.scan_session import ScanSession
from src.services.scanner_service import ScannerService
from src.services.vision_service import VisionAnalysisService


class ServiceProvider(Provider):
    """
    Provider for service dependencies.

    Services are provided at APP scope (singleton). They hold no per-scan
    state, so concurrent scans never share mutable data. The scan session
    is the only stateful object and lives for one request.
    """

    config = from_context(provides=Config, scope=Scope.APP)

    @provide(scope=Scope.APP)
    async def provide_http_client(self, config: Config) -> AsyncIterable[httpx.AsyncClient]:
        async with httpx.AsyncClient(timeout=config.http_timeout) as client:
            yield client

    @provide(scope=Scope.APP)
    def provide_extraction_service(
        self,
        config: Config,
        client: httpx.AsyncClient,
    ) -> ExtractionService:
        return ExtractionService([
            HandwritingOCRStrategy(config, client),
            OCRSpaceStrategy(config, client),
            TesseractStrategy(config),
        ])

    @provide(scope=Scope.APP)
    def provide_detection_service(
        self,
        config: Config,
        client: httpx.AsyncClient,
    ) -> DetectionService:
        return DetectionService(
            PatternDetector(),
            StatisticalDetector(),
            RemoteEnsembleDetector(config, client),
            ScoreResolver(),
        )

    @provide(scope=Scope.APP)
    def provide_scanner_service(
        self,
        extraction: ExtractionService,
        detection: DetectionService,
    ) -> ScannerService:
        return ScannerService(extraction, detection)

    @provide(scope=Scope.REQUEST)
    def provide_scan_session(self, scanner: ScannerService) -> ScanSession:
        return ScanSession(scanner)

    @provide(scope=Scope.APP)
    def provide_vision_service(self, config: Config) -> VisionAnalysisService:
        return VisionAnalysisService(config)
