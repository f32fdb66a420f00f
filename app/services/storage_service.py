"""
Local file storage for uploaded documents.

Paths handed out and accepted by this service are relative to
settings.STORAGE_ROOT, e.g. "resumes/3f2a...9c.pdf".
"""
import logging
import os
import uuid
from typing import List, Tuple

from app.core.config import settings

logger = logging.getLogger(__name__)

STAGED_SUFFIX = ".deleting"


class StorageError(Exception):
    """A file could not be written, moved or removed"""


class StorageService:
    """Service for storing and releasing uploaded files"""

    @property
    def root(self) -> str:
        return settings.STORAGE_ROOT

    def absolute_path(self, relative_path: str) -> str:
        root = os.path.abspath(self.root)
        path = os.path.abspath(os.path.join(root, relative_path))
        if os.path.commonpath([root, path]) != root:
            raise StorageError(f"Path escapes storage root: {relative_path}")
        return path

    def exists(self, relative_path: str) -> bool:
        return os.path.exists(self.absolute_path(relative_path))

    def save(self, folder: str, filename: str, content: bytes) -> str:
        """Write content under folder with a random name keeping the extension"""
        extension = os.path.splitext(filename or "")[1].lower()
        directory = self.absolute_path(folder)
        os.makedirs(directory, exist_ok=True)

        unique = f"{uuid.uuid4().hex}{extension}"
        relative_path = f"{folder}/{unique}"
        try:
            with open(self.absolute_path(relative_path), "wb") as fh:
                fh.write(content)
        except OSError as e:
            raise StorageError(f"Failed to store {filename}: {e}") from e

        logger.info(f"Stored upload {relative_path} ({len(content)} bytes)")
        return relative_path

    def stage_delete(self, relative_paths: List[str]) -> List[Tuple[str, str]]:
        """
        Move files aside so they can be restored if the owning row survives.

        Returns (original, staged) absolute path pairs. Files that are already
        gone are skipped. On failure every file staged so far is restored.
        """
        staged = []
        for relative_path in relative_paths:
            original = self.absolute_path(relative_path)
            if not os.path.exists(original):
                logger.warning(f"Stored file already missing: {relative_path}")
                continue
            target = original + STAGED_SUFFIX
            try:
                os.replace(original, target)
            except OSError as e:
                self.restore(staged)
                raise StorageError(f"Failed to release {relative_path}: {e}") from e
            staged.append((original, target))
        return staged

    def restore(self, staged: List[Tuple[str, str]]) -> None:
        for original, target in staged:
            try:
                os.replace(target, original)
            except OSError:
                logger.error(f"Failed to restore staged file {target}", exc_info=True)

    def purge(self, staged: List[Tuple[str, str]]) -> None:
        """Remove staged files for good"""
        for _, target in staged:
            try:
                os.remove(target)
            except OSError:
                logger.error(f"Failed to remove staged file {target}", exc_info=True)


storage_service = StorageService()
