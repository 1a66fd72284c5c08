"""Abstract attachment store interface."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from uuid import UUID

from ridetrack.domain.entities import AttachmentParentKind


class AttachmentStore(ABC):
    """Abstract storage for image attachments and their thumbnails.

    Files are addressed by (parent kind, parent id, filename). A thumbnail
    always follows its full image: writing, extracting or deleting an image
    does the same to its thumbnail.
    """

    @abstractmethod
    def image_path(self, kind: AttachmentParentKind, parent_id: UUID, filename: str) -> Path:
        """Return the path of a full-size image."""
        pass

    @abstractmethod
    def thumbnail_path(self, kind: AttachmentParentKind, parent_id: UUID, filename: str) -> Path:
        """Return the path of an image thumbnail."""
        pass

    @abstractmethod
    def write(
        self,
        kind: AttachmentParentKind,
        parent_id: UUID,
        filename: str,
        data: bytes,
        thumbnail: Optional[bytes] = None,
    ) -> None:
        """Write an image (and optionally its thumbnail)."""
        pass

    @abstractmethod
    def extract(
        self,
        source_dir: Optional[Path],
        kind: AttachmentParentKind,
        parent_id: UUID,
        filename: str,
    ) -> bool:
        """Copy an image from an extracted backup folder into the store.

        Returns True if the full image was written, False otherwise.
        """
        pass

    @abstractmethod
    def delete(self, kind: AttachmentParentKind, parent_id: UUID, filename: str) -> None:
        """Delete an image and its thumbnail. Missing files are ignored."""
        pass

    @abstractmethod
    def delete_all(self, kind: AttachmentParentKind, parent_id: UUID) -> None:
        """Delete every image and thumbnail of a parent record."""
        pass

    @abstractmethod
    def exists(self, kind: AttachmentParentKind, parent_id: UUID, filename: str) -> bool:
        """Check if the full image exists."""
        pass

    @abstractmethod
    def list_parents(self, kind: AttachmentParentKind) -> list[UUID]:
        """List parent ids that have stored files."""
        pass

    @abstractmethod
    def list_files(self, kind: AttachmentParentKind, parent_id: UUID) -> list[str]:
        """List full-image filenames stored for a parent."""
        pass

    @abstractmethod
    def export(self, kind: AttachmentParentKind, parent_id: UUID, destination_dir: Path) -> int:
        """Copy a parent's images into a backup folder. Returns files copied."""
        pass
