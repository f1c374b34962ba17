"""Local disk storage for generated documents."""

from pathlib import Path
from typing import Optional

from loguru import logger

from telehealth.core.config import settings
from telehealth.core.exceptions import StorageError


def _base_dir(directory: Optional[str] = None) -> Path:
    return Path(directory or settings.REPORTS_DIR)


def save_file(content: bytes, filename: str, directory: Optional[str] = None) -> str:
    """
    Writes content under the storage directory and returns the stored path.
    """
    if Path(filename).name != filename:
        raise ValueError(f"Invalid file name: {filename!r}")

    target = _base_dir(directory) / filename
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    except OSError as e:
        logger.error(f"Failed to store {filename}: {e}")
        raise StorageError(details={"operation": "store file"}) from e

    logger.info(f"Stored {filename} ({len(content)} bytes) in {target.parent}")
    return str(target)


def delete_file(path: str) -> None:
    """Best-effort removal of a stored file"""
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove {path}: {e}")


def file_exists(path: str) -> bool:
    return Path(path).is_file()
