"""
Abstract base class for database repositories.
Defines the contract for video metadata storage operations.
"""
from abc import ABC, abstractmethod
from src.models.video_model import Video


class DBRepository(ABC):
    """Abstract repository interface for video metadata operations."""

    @abstractmethod
    def create(self, video: Video) -> Video:
        """
        Persist a new video record.

        Returns:
            The saved Video with video_id set

        Raises:
            PersistenceError: If the write fails or the id is already taken
        """
        pass
