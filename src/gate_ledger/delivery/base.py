"""
File-delivery side channel.

Each call either fully delivers the named artifact or raises DeliveryError.
Delivery has no undo: artifacts delivered before a failure stay delivered.
"""

from abc import ABC, abstractmethod


class DeliveryError(Exception):
    """Base exception for artifact delivery errors."""

    def __init__(self, file_name: str, message: str):
        self.file_name = file_name
        self.message = message
        super().__init__(f"Failed to deliver {file_name}: {message}")


class FileDelivery(ABC):
    """Target that exported artifacts are handed to."""

    @abstractmethod
    def deliver(self, content: bytes, file_name: str, media_type: str) -> None:
        """Deliver one artifact under the suggested file name.

        Raises:
            DeliveryError: if the artifact could not be delivered
        """
