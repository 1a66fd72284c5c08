"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class BundleLoadError(DomainError):
    """A backup bundle could not be loaded.

    Raised before any local state is touched, so callers can report it and
    abort the restore attempt.
    """


class CorruptArchiveError(BundleLoadError):
    """The backup archive is unreadable or contains unsafe entries."""


class ManifestMissingError(BundleLoadError):
    """The backup archive does not contain a manifest file."""


class ManifestMalformedError(BundleLoadError):
    """The manifest is not valid JSON or fails schema validation."""


class AttachmentStoreError(DomainError):
    """Invalid request to the attachment store."""


def corrupt_archive(path: str, reason: str) -> str:
    """Return message for an unreadable archive."""
    return f"Backup archive '{path}' is corrupt: {reason}"


def manifest_missing(path: str, manifest_name: str) -> str:
    """Return message for an archive without a manifest."""
    return f"Backup archive '{path}' does not contain {manifest_name}"


def manifest_malformed(path: str, reason: str) -> str:
    """Return message for an invalid manifest."""
    return f"Backup manifest '{path}' is invalid: {reason}"


def invalid_attachment_filename(filename: str) -> str:
    """Return message for a filename that would escape the store."""
    return f"Invalid attachment filename '{filename}'"
