"""
Filesystem delivery: artifacts are written into an output directory.
"""

import logging
import os
import tempfile
from pathlib import Path

from .base import DeliveryError, FileDelivery

logger = logging.getLogger(__name__)


class FilesystemDelivery(FileDelivery):
    """
    Writes each artifact to output_dir/file_name.

    Files are written to a temporary name and renamed into place, so a
    failed write never leaves a truncated artifact. Existing files with the
    same name are overwritten, which keeps a retried export idempotent.
    """

    def __init__(self, output_dir: Path | str):
        self.output_dir = Path(output_dir)

    def deliver(self, content: bytes, file_name: str, media_type: str) -> None:
        if Path(file_name).name != file_name or file_name in ("", ".", ".."):
            raise DeliveryError(file_name, "file name must not contain a directory")

        target = self.output_dir / file_name
        tmp_name = None
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.output_dir, prefix=".", suffix=".part")
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
            os.replace(tmp_name, target)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise DeliveryError(file_name, str(e)) from e

        logger.debug("Wrote %s (%d bytes, %s)", target, len(content), media_type)
