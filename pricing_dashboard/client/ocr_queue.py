"""Selection and sequential processing of files that still need OCR."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from pricing_dashboard.core.exceptions import AppError
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

OCR_FILE_TYPES = {"pdf", "image", "excel", "png", "jpg", "jpeg", "gif", "bmp", "tiff", "webp"}
OCR_EXTENSIONS = (".pdf", ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tiff", ".webp")

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"


@dataclass
class OCRTarget:
    upload_id: str
    file_name: str
    file_type: str = ""
    folder_path: str = "Root"


@dataclass
class MassOCRResult:
    """Outcome of a mass OCR run.

    Attributes:
        results: fileName -> final status (``completed`` or ``failed``)
        successful: Number of files processed
        failed: Number of files that failed
        errors: fileName -> error message for failed files
    """

    results: Dict[str, str] = field(default_factory=dict)
    successful: int = 0
    failed: int = 0
    errors: Dict[str, str] = field(default_factory=dict)


def is_supported_for_ocr(file_info: Mapping[str, Any]) -> bool:
    file_type = str(file_info.get("fileType") or "").lower()
    file_name = str(file_info.get("fileName") or "").lower()
    return file_type in OCR_FILE_TYPES or file_name.endswith(OCR_EXTENSIONS)


def select_files_for_ocr(
    uploads: Iterable[Mapping[str, Any]],
    analyses: Iterable[Mapping[str, Any]],
) -> List[OCRTarget]:
    """Collect supported files that have no ``mistral_ocr`` analysis yet.

    Files are matched to analyses by exact fileName, so two files with the
    same name in different folders count as one.
    """
    processed = {
        a.get("fileName")
        for a in analyses
        if a.get("analysisType") == "mistral_ocr"
    }

    targets: List[OCRTarget] = []
    for upload in uploads:
        extracted = upload.get("extractedFiles")
        if not isinstance(extracted, list):
            continue
        for file_info in extracted:
            if not isinstance(file_info, Mapping):
                continue
            if not is_supported_for_ocr(file_info) or file_info.get("fileName") in processed:
                continue
            targets.append(
                OCRTarget(
                    upload_id=str(upload.get("id")),
                    file_name=file_info["fileName"],
                    file_type=str(file_info.get("fileType") or ""),
                    folder_path=file_info.get("folderPath") or "Root",
                )
            )
    return targets


async def run_mass_ocr(
    client,
    files: List[OCRTarget],
    on_status: Optional[Callable[[str, str], None]] = None,
) -> MassOCRResult:
    """Send the files to ``/api/process-ocr`` one after another.

    Each request is awaited before the next one starts. A failing file is
    recorded and the run continues.

    Args:
        client: A DashboardClient
        files: Files to process, in order
        on_status: Called with (fileName, status) on every status change
    """
    result = MassOCRResult()

    def set_status(file_name: str, status: str) -> None:
        result.results[file_name] = status
        if on_status is not None:
            on_status(file_name, status)

    for target in files:
        set_status(target.file_name, PENDING)

    for target in files:
        set_status(target.file_name, PROCESSING)
        try:
            await client.process_ocr(target.upload_id, target.file_name)
        except AppError as e:
            LOGGER.warning(f"OCR failed for {target.file_name}: {e.message}")
            result.errors[target.file_name] = e.message
            result.failed += 1
            set_status(target.file_name, FAILED)
        else:
            result.successful += 1
            set_status(target.file_name, COMPLETED)

    LOGGER.info(
        "Mass OCR finished",
        extra={"total": len(files), "successful": result.successful, "failed": result.failed},
    )
    return result
