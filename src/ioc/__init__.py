"""
Dependency injection container configuration using Dishka.
"""

from src.ioc.service_provider import ServiceProvider


class AppProvider(ServiceProvider):
    """Root provider: OCR cascade, detectors, scanner and vision services."""


__all__ = ["AppProvider"]
