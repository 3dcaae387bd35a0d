"""
HTTP delivery: artifacts are uploaded to a collection service.
"""

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .base import DeliveryError, FileDelivery

logger = logging.getLogger(__name__)


class HttpDelivery(FileDelivery):
    """
    Uploads each artifact as a multipart POST to {base_url}/api/artifacts/.

    Features:
    - Token auth
    - Automatic retry with backoff on transient server errors
    """

    DEFAULT_TIMEOUT = 30
    UPLOAD_ENDPOINT = "/api/artifacts/"

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = 2,
        backoff_factor: float = 0.5,
    ):
        """
        Initialize HTTP delivery.

        Args:
            base_url: Collection service URL (e.g., "http://192.168.1.20:8000")
            token: API token for authentication
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts for transient failures
            backoff_factor: Backoff factor for retries
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Token {token}"

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["POST"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def deliver(self, content: bytes, file_name: str, media_type: str) -> None:
        url = f"{self.base_url}{self.UPLOAD_ENDPOINT}"

        try:
            response = self.session.post(
                url,
                files={"file": (file_name, content, media_type)},
                data={"file_name": file_name},
                timeout=self.timeout,
            )
        except requests.exceptions.ConnectionError as e:
            raise DeliveryError(file_name, f"failed to connect to {self.base_url}: {e}") from e
        except requests.exceptions.Timeout as e:
            raise DeliveryError(file_name, f"request timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            raise DeliveryError(file_name, f"request failed: {e}") from e

        if not response.ok:
            raise DeliveryError(
                file_name, f"server returned {response.status_code} {response.reason}"
            )

        logger.debug("Uploaded %s (%d bytes) to %s", file_name, len(content), url)
