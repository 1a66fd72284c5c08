"""Reading and writing backup bundles.

A bundle is either a ZIP archive holding a single top-level folder with
``backup.json`` and an image tree, or a legacy bare ``backup.json`` file
without images. Both decode to the same :class:`Bundle` shape.
"""

import json
import logging
import shutil
import tempfile
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional, TypeVar
from uuid import UUID, uuid4

from pydantic import ValidationError

from ridetrack.domain.entities import (
    AttachmentParentKind,
    Expense,
    LocalDataset,
    PreferencesSnapshot,
    Shift,
    UberTransaction,
)
from ridetrack.domain.errors import (
    CorruptArchiveError,
    ManifestMalformedError,
    ManifestMissingError,
    corrupt_archive,
    manifest_malformed,
    manifest_missing,
)
from ridetrack.domain.manifest import (
    ManifestModel,
    expense_from_model,
    expense_to_model,
    preferences_from_model,
    preferences_to_model,
    shift_from_model,
    shift_to_model,
    transaction_from_model,
    transaction_to_model,
)
from ridetrack.storage.base import AttachmentStore
from ridetrack.utils.date_parser import utc_now

logger = logging.getLogger(__name__)

MANIFEST_NAME = "backup.json"
IGNORED_ARCHIVE_ENTRIES = {"__MACOSX"}

T = TypeVar("T", Shift, Expense, UberTransaction)


@dataclass
class Bundle:
    """A loaded backup, ready to be restored once.

    ``source_dir`` is the extracted top-level folder of an archive bundle and
    is None for legacy bundles. Archive bundles own a temporary directory;
    call :meth:`close` (or use the bundle as a context manager) to remove it.
    """

    shifts: list[Shift]
    expenses: Optional[list[Expense]]
    transactions: Optional[list[UberTransaction]]
    preferences: PreferencesSnapshot
    export_date: datetime
    app_version: str
    source_dir: Optional[Path] = None
    is_legacy: bool = False
    _temp_dir: Optional[Path] = field(default=None, repr=False, compare=False)

    @property
    def has_images(self) -> bool:
        """True if the bundle carries an image tree."""
        return self.source_dir is not None and (self.source_dir / "Images").is_dir()

    def close(self) -> None:
        """Remove the temporary extraction directory, if any."""
        if self._temp_dir is not None:
            shutil.rmtree(self._temp_dir, ignore_errors=True)
            self._temp_dir = None
            self.source_dir = None

    def __enter__(self) -> "Bundle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _dedupe_by_id(records: Iterable[T], label: str, source: str) -> list[T]:
    """Collapse repeated ids; the last occurrence wins at the first position."""
    by_id: dict[UUID, T] = {}
    for record in records:
        if record.id in by_id:
            logger.warning("Duplicate %s id %s in %s; keeping last occurrence", label, record.id, source)
        by_id[record.id] = record
    return list(by_id.values())


def _summarize_validation_error(error: ValidationError, limit: int = 3) -> str:
    parts = []
    for detail in error.errors()[:limit]:
        location = ".".join(str(p) for p in detail["loc"]) or "<root>"
        parts.append(f"{location}: {detail['msg']}")
    remaining = error.error_count() - limit
    if remaining > 0:
        parts.append(f"and {remaining} more error{'s' if remaining != 1 else ''}")
    return "; ".join(parts)


def decode_manifest(data: bytes | str, source: str = MANIFEST_NAME) -> Bundle:
    """Decode manifest JSON into a Bundle without image data.

    Args:
        data: Manifest file contents
        source: Name used in error messages

    Returns:
        Bundle with ``source_dir`` unset

    Raises:
        ManifestMalformedError: If the JSON is invalid or fails validation
    """
    try:
        payload = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestMalformedError(manifest_malformed(source, f"not valid JSON ({e})"))

    if not isinstance(payload, dict):
        raise ManifestMalformedError(manifest_malformed(source, "top-level value must be an object"))

    try:
        manifest = ManifestModel.model_validate(payload)
    except ValidationError as e:
        raise ManifestMalformedError(manifest_malformed(source, _summarize_validation_error(e)))

    shifts = _dedupe_by_id(
        (shift_from_model(m) for m in manifest.shifts or []), "shift", source
    )
    expenses = None
    if manifest.expenses is not None:
        expenses = _dedupe_by_id(
            (expense_from_model(m) for m in manifest.expenses), "expense", source
        )
    transactions = None
    if manifest.uber_transactions is not None:
        transactions = _dedupe_by_id(
            (transaction_from_model(m) for m in manifest.uber_transactions),
            "transaction",
            source,
        )

    return Bundle(
        shifts=shifts,
        expenses=expenses,
        transactions=transactions,
        preferences=preferences_from_model(manifest.preferences),
        export_date=manifest.export_date,
        app_version=manifest.app_version,
    )


def encode_manifest(
    shifts: Iterable[Shift],
    expenses: Optional[Iterable[Expense]],
    transactions: Optional[Iterable[UberTransaction]],
    preferences: PreferencesSnapshot,
    export_date: datetime,
    app_version: str,
) -> bytes:
    """Encode records and preferences as manifest JSON."""
    manifest = ManifestModel(
        shifts=[shift_to_model(s) for s in shifts],
        expenses=None if expenses is None else [expense_to_model(e) for e in expenses],
        uber_transactions=(
            None if transactions is None else [transaction_to_model(t) for t in transactions]
        ),
        preferences=preferences_to_model(preferences),
        export_date=export_date,
        app_version=app_version,
    )
    return manifest.model_dump_json(by_alias=True, indent=2).encode("utf-8")


def _is_unsafe_member(name: str) -> bool:
    normalized = name.replace("\\", "/")
    path = PurePosixPath(normalized)
    if path.is_absolute() or ".." in path.parts:
        return True
    # Windows drive prefixes such as "C:"
    return bool(path.parts) and path.parts[0].endswith(":")


def _extract_archive(path: Path, destination: Path) -> None:
    try:
        archive = zipfile.ZipFile(path)
    except (zipfile.BadZipFile, OSError) as e:
        raise CorruptArchiveError(corrupt_archive(str(path), str(e)))

    with archive:
        members = archive.infolist()
        if not members:
            raise CorruptArchiveError(corrupt_archive(str(path), "archive is empty"))
        for member in members:
            if _is_unsafe_member(member.filename):
                raise CorruptArchiveError(
                    corrupt_archive(str(path), f"unsafe entry '{member.filename}'")
                )
        try:
            archive.extractall(destination)
        except (zipfile.BadZipFile, OSError, RuntimeError, NotImplementedError, EOFError) as e:
            raise CorruptArchiveError(corrupt_archive(str(path), str(e)))


def _locate_backup_root(extract_dir: Path, archive_path: Path) -> Path:
    """Find the folder holding the manifest inside an extracted archive."""
    if (extract_dir / MANIFEST_NAME).is_file():
        return extract_dir

    folders = [
        entry
        for entry in extract_dir.iterdir()
        if entry.is_dir()
        and entry.name not in IGNORED_ARCHIVE_ENTRIES
        and not entry.name.startswith(".")
    ]
    candidates = [folder for folder in folders if (folder / MANIFEST_NAME).is_file()]
    if len(candidates) == 1:
        return candidates[0]
    if candidates:
        names = ", ".join(sorted(folder.name for folder in candidates))
        raise CorruptArchiveError(
            corrupt_archive(str(archive_path), f"ambiguous backup folders ({names})")
        )

    raise ManifestMissingError(manifest_missing(str(archive_path), MANIFEST_NAME))


def _load_archive(path: Path) -> Bundle:
    temp_dir = Path(tempfile.mkdtemp(prefix="RideshareRestore_"))
    try:
        _extract_archive(path, temp_dir)
        root = _locate_backup_root(temp_dir, path)
        manifest_path = root / MANIFEST_NAME
        bundle = decode_manifest(manifest_path.read_bytes(), f"{path.name}/{MANIFEST_NAME}")
    except Exception:
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise

    bundle.source_dir = root
    bundle._temp_dir = temp_dir
    logger.debug("Extracted backup %s to %s", path.name, root)
    return bundle


def _load_legacy(path: Path) -> Bundle:
    bundle = decode_manifest(path.read_bytes(), str(path))
    bundle.is_legacy = True
    return bundle


def load_backup(path: str | Path) -> Bundle:
    """Load a backup bundle from disk.

    ZIP archives (detected by content or a ``.zip`` extension) are extracted
    to a temporary directory; anything else is parsed as a legacy manifest.
    Loading is read-only with respect to the local dataset.

    Args:
        path: Path to a ``.zip`` backup or a legacy ``.json`` backup

    Returns:
        Loaded Bundle

    Raises:
        FileNotFoundError: If the path does not exist
        CorruptArchiveError: If the archive cannot be read safely
        ManifestMissingError: If the archive has no manifest
        ManifestMalformedError: If the manifest is invalid
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Backup file not found: {path}")

    if zipfile.is_zipfile(path) or path.suffix.lower() == ".zip":
        logger.info("Loading backup archive %s", path.name)
        bundle = _load_archive(path)
    else:
        logger.info("Loading legacy backup %s", path.name)
        bundle = _load_legacy(path)

    logger.info(
        "Loaded backup from app version %s: %d shifts, %d expenses, %s transactions",
        bundle.app_version,
        len(bundle.shifts),
        len(bundle.expenses or []),
        "no" if bundle.transactions is None else len(bundle.transactions),
    )
    return bundle


def write_backup(
    dataset: LocalDataset,
    destination_dir: str | Path,
    store: Optional[AttachmentStore] = None,
    include_images: bool = True,
    app_version: str = "1.0",
    export_date: Optional[datetime] = None,
) -> Path:
    """Write the dataset as a ZIP backup.

    The archive holds a single ``RideshareBackup_<uuid>/`` folder with
    ``backup.json`` and, when ``include_images`` is set and a store is given,
    the ``Images/`` and ``Thumbnails/`` trees of every exported record.

    Args:
        dataset: Records and preferences to export
        destination_dir: Directory the archive is written to
        store: Attachment store to copy images from
        include_images: Whether to copy image files
        app_version: Version recorded in the manifest
        export_date: Export timestamp (defaults to now)

    Returns:
        Path to the written archive
    """
    export_date = export_date or utc_now()
    destination_dir = Path(destination_dir)
    destination_dir.mkdir(parents=True, exist_ok=True)
    archive_path = destination_dir / (
        f"RideshareTracker_Backup_{export_date.strftime('%Y-%m-%d_%H-%M-%S')}.zip"
    )

    staging_dir = Path(tempfile.mkdtemp(prefix="RideshareBackup_"))
    try:
        backup_dir = staging_dir / f"RideshareBackup_{str(uuid4()).upper()}"
        backup_dir.mkdir()

        manifest = encode_manifest(
            shifts=dataset.shifts,
            expenses=dataset.expenses,
            transactions=dataset.transactions,
            preferences=dataset.preferences.to_snapshot(),
            export_date=export_date,
            app_version=app_version,
        )
        (backup_dir / MANIFEST_NAME).write_bytes(manifest)
        logger.debug("Wrote %s (%d bytes)", MANIFEST_NAME, len(manifest))

        if include_images and store is not None:
            copied = 0
            for shift in dataset.shifts:
                copied += store.export(AttachmentParentKind.SHIFT, shift.id, backup_dir)
            for expense in dataset.expenses:
                copied += store.export(AttachmentParentKind.EXPENSE, expense.id, backup_dir)
            logger.debug("Copied %d image files into backup", copied)

        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for file_path in sorted(backup_dir.rglob("*")):
                if file_path.is_file():
                    archive.write(file_path, file_path.relative_to(staging_dir).as_posix())
    finally:
        shutil.rmtree(staging_dir, ignore_errors=True)

    logger.info("Created backup archive %s", archive_path)
    return archive_path
