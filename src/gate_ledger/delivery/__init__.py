"""
File-delivery side channel for exported artifacts.

Backends:
- filesystem: write into a local directory
- http: upload to a collection service (retry/backoff)
"""

from ..config import DeliveryConfig
from .base import DeliveryError, FileDelivery
from .filesystem import FilesystemDelivery
from .http import HttpDelivery


def build_delivery(config: DeliveryConfig) -> FileDelivery:
    """Create the delivery backend selected in the configuration."""
    if config.backend == "http":
        if not config.base_url:
            raise ValueError("delivery.base_url is required for the http backend")
        return HttpDelivery(
            base_url=config.base_url,
            token=config.token,
            timeout=config.timeout_seconds,
            max_retries=config.max_retries,
        )
    if config.backend == "filesystem":
        return FilesystemDelivery(config.output_dir)
    raise ValueError(f"Unknown delivery backend: {config.backend!r}")


__all__ = [
    "DeliveryError",
    "FileDelivery",
    "FilesystemDelivery",
    "HttpDelivery",
    "build_delivery",
]
