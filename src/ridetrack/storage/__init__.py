"""Image attachment storage for ridetrack."""

from ridetrack.storage.base import AttachmentStore
from ridetrack.storage.filesystem import FilesystemAttachmentStore

__all__ = ["AttachmentStore", "FilesystemAttachmentStore"]
