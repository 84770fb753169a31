"""Local artifact storage for rendered resumes."""
import asyncio
import logging
import re
import uuid
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class ArtifactStorage:
    """Writes documents under a root directory, keyed by user."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _write(self, target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    async def save(self, user_id: str, data: bytes, extension: str) -> str:
        """
        Persist one document.

        Args:
            user_id: Owner of the document
            data: Document bytes
            extension: File extension without dot (pdf or html)

        Returns:
            Path relative to the storage root
        """
        owner = re.sub(r"[^A-Za-z0-9_-]", "_", user_id) or "unknown"
        relative = Path("resumes") / owner / f"{uuid.uuid4()}.{extension}"
        await asyncio.to_thread(self._write, self.root / relative, data)
        logger.info(f"Stored {len(data)} bytes at {relative}")
        return relative.as_posix()
