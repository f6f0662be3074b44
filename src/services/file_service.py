"""
File Service for local staging files.
Removes staged upload files once a workflow ends, whatever its outcome.
"""
import errno
import os
from typing import Iterable, List, Optional
from src.core.exceptions import CleanupError
from src.core.logger import get_logger

logger = get_logger(__name__)


class FileService:
    """Service for local file housekeeping."""

    def remove_file(self, path: Optional[str]) -> bool:
        """
        Delete one file. A missing file counts as removed.

        Returns:
            True if a file was deleted, False if there was nothing to delete

        Raises:
            OSError: For any failure other than the file being absent
        """
        if not path:
            return False
        try:
            os.remove(path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            if e.errno == errno.ENOENT:
                return False
            raise

    def cleanup(self, paths: Iterable[Optional[str]]) -> None:
        """
        Attempt to delete every given path, then report failures together.

        Args:
            paths: File paths; None entries are skipped

        Raises:
            CleanupError: If one or more paths could not be removed
        """
        errors: List[OSError] = []
        for path in paths:
            try:
                self.remove_file(path)
            except OSError as e:
                logger.warning(f"Could not remove staged file {path}: {str(e)}")
                errors.append(e)

        if errors:
            raise CleanupError(errors)
