"""Filesystem implementation of the attachment store."""

import logging
import shutil
from pathlib import Path
from typing import Optional
from uuid import UUID

from ridetrack.domain.entities import AttachmentParentKind
from ridetrack.domain.errors import AttachmentStoreError, invalid_attachment_filename
from ridetrack.storage.base import AttachmentStore

logger = logging.getLogger(__name__)

IMAGES_DIR = "Images"
THUMBNAILS_DIR = "Thumbnails"


def parent_dir_name(parent_id: UUID) -> str:
    """Return the folder name used for a parent record."""
    return str(parent_id).upper()


def _validate_filename(filename: str) -> None:
    if (
        not filename
        or filename in (".", "..")
        or "/" in filename
        or "\\" in filename
        or "\x00" in filename
    ):
        raise AttachmentStoreError(invalid_attachment_filename(filename))


def _find_existing(candidates: list[Path]) -> Optional[Path]:
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def _parent_dir_candidates(base: Path, parent_id: UUID) -> list[Path]:
    # Backups from other exporters may use lowercase folder names
    upper = parent_dir_name(parent_id)
    return [base / upper, base / upper.lower()]


class FilesystemAttachmentStore(AttachmentStore):
    """Attachment store rooted at a local directory.

    Layout::

        <root>/Images/<kind>/<PARENT-UUID>/<filename>
        <root>/Thumbnails/<kind>/<PARENT-UUID>/<filename>
    """

    def __init__(self, root: str | Path):
        """Initialize filesystem attachment store.

        Args:
            root: Directory holding the Images/ and Thumbnails/ trees
        """
        self.root = Path(root)
        self.images_dir = self.root / IMAGES_DIR
        self.thumbnails_dir = self.root / THUMBNAILS_DIR

    def _image_parent_dir(self, kind: AttachmentParentKind, parent_id: UUID) -> Path:
        return self.images_dir / kind.value / parent_dir_name(parent_id)

    def _thumbnail_parent_dir(self, kind: AttachmentParentKind, parent_id: UUID) -> Path:
        return self.thumbnails_dir / kind.value / parent_dir_name(parent_id)

    def image_path(self, kind: AttachmentParentKind, parent_id: UUID, filename: str) -> Path:
        """Return the path of a full-size image."""
        _validate_filename(filename)
        return self._image_parent_dir(kind, parent_id) / filename

    def thumbnail_path(self, kind: AttachmentParentKind, parent_id: UUID, filename: str) -> Path:
        """Return the path of an image thumbnail."""
        _validate_filename(filename)
        return self._thumbnail_parent_dir(kind, parent_id) / filename

    def write(
        self,
        kind: AttachmentParentKind,
        parent_id: UUID,
        filename: str,
        data: bytes,
        thumbnail: Optional[bytes] = None,
    ) -> None:
        """Write an image and, when given, its thumbnail.

        Writing an image without a thumbnail removes any stale thumbnail
        left from a previous file with the same name.
        """
        image_path = self.image_path(kind, parent_id, filename)
        thumb_path = self.thumbnail_path(kind, parent_id, filename)

        image_path.parent.mkdir(parents=True, exist_ok=True)
        image_path.write_bytes(data)

        if thumbnail is not None:
            thumb_path.parent.mkdir(parents=True, exist_ok=True)
            thumb_path.write_bytes(thumbnail)
        else:
            thumb_path.unlink(missing_ok=True)

    def extract(
        self,
        source_dir: Optional[Path],
        kind: AttachmentParentKind,
        parent_id: UUID,
        filename: str,
    ) -> bool:
        """Copy an image and its thumbnail from an extracted backup folder.

        The full image is looked up under ``Images/<kind>/<UUID>/``. The
        thumbnail is looked up under ``Images/<kind>/Thumbnails/<UUID>/`` and
        ``Thumbnails/<kind>/<UUID>/``.

        Returns:
            True if the full image was copied, False if it is missing from
            the backup or could not be written
        """
        if source_dir is None:
            return False

        _validate_filename(filename)
        source_dir = Path(source_dir)
        kind_dir = source_dir / IMAGES_DIR / kind.value

        source_image = _find_existing(
            [d / filename for d in _parent_dir_candidates(kind_dir, parent_id)]
        )
        if source_image is None:
            logger.debug("No image %s for %s %s in backup", filename, kind.value, parent_id)
            return False

        thumbnail_bases = [
            kind_dir / THUMBNAILS_DIR,
            source_dir / THUMBNAILS_DIR / kind.value,
        ]
        source_thumbnail = _find_existing(
            [
                d / filename
                for base in thumbnail_bases
                for d in _parent_dir_candidates(base, parent_id)
            ]
        )

        image_path = self.image_path(kind, parent_id, filename)
        thumb_path = self.thumbnail_path(kind, parent_id, filename)
        try:
            image_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_image, image_path)
            if source_thumbnail is not None:
                thumb_path.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source_thumbnail, thumb_path)
            else:
                thumb_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(
                "Failed to extract image %s for %s %s: %s", filename, kind.value, parent_id, e
            )
            image_path.unlink(missing_ok=True)
            thumb_path.unlink(missing_ok=True)
            return False

        return True

    def delete(self, kind: AttachmentParentKind, parent_id: UUID, filename: str) -> None:
        """Delete an image and its thumbnail."""
        self.image_path(kind, parent_id, filename).unlink(missing_ok=True)
        self.thumbnail_path(kind, parent_id, filename).unlink(missing_ok=True)

    def delete_all(self, kind: AttachmentParentKind, parent_id: UUID) -> None:
        """Delete the image and thumbnail folders of a parent record."""
        for directory in (
            self._image_parent_dir(kind, parent_id),
            self._thumbnail_parent_dir(kind, parent_id),
        ):
            if directory.exists():
                shutil.rmtree(directory)

    def exists(self, kind: AttachmentParentKind, parent_id: UUID, filename: str) -> bool:
        """Check if the full image exists."""
        return self.image_path(kind, parent_id, filename).is_file()

    def list_parents(self, kind: AttachmentParentKind) -> list[UUID]:
        """List parent ids with an image or thumbnail folder."""
        parents: set[UUID] = set()
        for base in (self.images_dir / kind.value, self.thumbnails_dir / kind.value):
            if not base.is_dir():
                continue
            for entry in base.iterdir():
                if not entry.is_dir():
                    continue
                try:
                    parents.add(UUID(entry.name))
                except ValueError:
                    logger.debug("Ignoring non-record folder %s", entry)
        return sorted(parents, key=str)

    def list_files(self, kind: AttachmentParentKind, parent_id: UUID) -> list[str]:
        """List full-image filenames stored for a parent."""
        directory = self._image_parent_dir(kind, parent_id)
        if not directory.is_dir():
            return []
        return sorted(entry.name for entry in directory.iterdir() if entry.is_file())

    def export(self, kind: AttachmentParentKind, parent_id: UUID, destination_dir: Path) -> int:
        """Copy a parent's images and thumbnails into a backup folder.

        Uses the same Images/ and Thumbnails/ layout as the store itself.
        """
        copied = 0
        destination_dir = Path(destination_dir)
        for source, target_root in (
            (self._image_parent_dir(kind, parent_id), destination_dir / IMAGES_DIR),
            (self._thumbnail_parent_dir(kind, parent_id), destination_dir / THUMBNAILS_DIR),
        ):
            if not source.is_dir():
                continue
            target = target_root / kind.value / parent_dir_name(parent_id)
            target.mkdir(parents=True, exist_ok=True)
            for entry in source.iterdir():
                if entry.is_file():
                    shutil.copyfile(entry, target / entry.name)
                    copied += 1
        return copied
