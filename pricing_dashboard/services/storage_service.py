"""Local file storage for uploads and extracted archive entries."""

import os
import shutil
import zipfile
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from fastapi import UploadFile

from pricing_dashboard.core.config import settings
from pricing_dashboard.core.exceptions import ExtractionError, InvalidDocumentError, UploadTooLargeError
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

EXCEL_EXTENSIONS = (".xlsx", ".xls", ".xlsm", ".csv")
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tiff", ".webp")
ARCHIVE_ENTRY_EXTENSIONS = (".xlsx", ".xls", ".xlsm", ".csv", ".pdf", ".png", ".jpg", ".jpeg")

CHUNK_SIZE = 1024 * 1024


def detect_file_type(file_name: str) -> str:
    """Map a file name to one of zip, excel, pdf or image.

    Raises:
        InvalidDocumentError: If the extension is not supported
    """
    ext = Path(file_name).suffix.lower()
    if ext == ".zip":
        return "zip"
    if ext in EXCEL_EXTENSIONS:
        return "excel"
    if ext == ".pdf":
        return "pdf"
    if ext in IMAGE_EXTENSIONS:
        return "image"
    raise InvalidDocumentError(f"Unsupported file type: {ext or file_name}")


def _safe_name(file_name: str) -> str:
    name = os.path.basename(file_name.replace("\\", "/")).strip()
    return name or "upload"


class StorageService:
    """Service for managing uploaded files on the local filesystem."""

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        extracted_dir: Optional[str] = None,
        max_upload_size_bytes: Optional[int] = None,
    ):
        self.upload_dir = Path(upload_dir or settings.storage.upload_dir)
        self.extracted_dir = Path(extracted_dir) if extracted_dir else settings.storage.extracted_dir
        self.max_upload_size_bytes = max_upload_size_bytes or settings.storage.max_upload_size_bytes

    def ensure_directories(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.extracted_dir.mkdir(parents=True, exist_ok=True)

    async def save_upload(self, file: UploadFile) -> Dict[str, Any]:
        """Stream an uploaded file to disk.

        Args:
            file: The multipart upload.

        Returns:
            Dict with fileName (stored name), originalFileName, filePath and fileSize.

        Raises:
            UploadTooLargeError: If the file is larger than the configured limit.
        """
        self.ensure_directories()
        original_name = _safe_name(file.filename or "upload")
        stored_name = f"{uuid4().hex}_{original_name}"
        target = self.upload_dir / stored_name

        size = 0
        try:
            with open(target, "wb") as out:
                while True:
                    chunk = await file.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_upload_size_bytes:
                        raise UploadTooLargeError(
                            f"File exceeds the maximum upload size of "
                            f"{self.max_upload_size_bytes // (1024 * 1024)} MB"
                        )
                    out.write(chunk)
        except UploadTooLargeError:
            target.unlink(missing_ok=True)
            raise
        finally:
            await file.seek(0)

        LOGGER.info(
            "Stored uploaded file",
            extra={"file_name": original_name, "stored_as": stored_name, "size": size},
        )
        return {
            "fileName": stored_name,
            "originalFileName": original_name,
            "filePath": str(target),
            "fileSize": size,
        }

    def extraction_path(self, upload_id: UUID) -> Path:
        return self.extracted_dir / f"upload_{upload_id}"

    def extract_zip(self, zip_path: str, upload_id: UUID) -> List[Dict[str, Any]]:
        """Extract the supported entries of an archive.

        Entries are flattened into ``extracted/upload_<id>/<basename>``; the
        directory they came from is kept as ``folderPath`` (``Root`` for
        top-level entries).

        Args:
            zip_path: Path of the stored archive
            upload_id: Upload the archive belongs to

        Returns:
            List of extracted file descriptors

        Raises:
            ExtractionError: If the archive cannot be opened
        """
        target_dir = self.extraction_path(upload_id)
        target_dir.mkdir(parents=True, exist_ok=True)
        resolved_target = target_dir.resolve()

        extracted: List[Dict[str, Any]] = []
        try:
            archive = zipfile.ZipFile(zip_path)
        except (zipfile.BadZipFile, OSError) as e:
            raise ExtractionError(f"Could not open archive: {e}", original_error=e) from e

        with archive:
            entries = archive.infolist()
            LOGGER.info(f"Found {len(entries)} entries in archive", extra={"upload_id": str(upload_id)})

            for entry in entries:
                if entry.is_dir():
                    continue

                entry_name = entry.filename.replace("\\", "/")
                entry_path = PurePosixPath(entry_name)
                ext = entry_path.suffix.lower()
                if ext not in ARCHIVE_ENTRY_EXTENSIONS:
                    LOGGER.debug(f"Skipping unsupported archive entry: {entry_name}")
                    continue

                base_name = entry_path.name
                destination = (target_dir / base_name).resolve()
                escapes = entry_path.is_absolute() or ".." in entry_path.parts
                if escapes or destination.parent != resolved_target:
                    LOGGER.warning(f"Skipping archive entry outside extraction dir: {entry_name}")
                    continue

                try:
                    with archive.open(entry) as source, open(destination, "wb") as out:
                        shutil.copyfileobj(source, out)
                except (OSError, zipfile.BadZipFile, RuntimeError) as e:
                    LOGGER.error(f"Error extracting {entry_name}: {e}", exc_info=True)
                    continue

                parent = str(entry_path.parent)
                extracted.append({
                    "fileName": base_name,
                    "filePath": str(target_dir / base_name),
                    "fileType": detect_file_type(base_name),
                    "folderPath": "Root" if parent in ("", ".") else parent,
                    "originalPath": entry_name,
                })

        LOGGER.info(
            f"Extracted {len(extracted)} supported files",
            extra={"upload_id": str(upload_id)},
        )
        return extracted

    def delete_upload_files(self, file_path: Optional[str], upload_id: UUID) -> None:
        """Remove a stored upload and its extraction directory, ignoring missing files."""
        if file_path:
            try:
                Path(file_path).unlink(missing_ok=True)
            except OSError as e:
                LOGGER.warning(f"Could not remove stored file {file_path}: {e}")

        extraction_dir = self.extraction_path(upload_id)
        if extraction_dir.exists():
            shutil.rmtree(extraction_dir, ignore_errors=True)
