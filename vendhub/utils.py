import logging
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)


def get_date_suffix_for_filename() -> str:
    """Returns the current date as a YYYY-MM-DD string for filenames."""
    return datetime.now().strftime("%Y-%m-%d")


def read_upload_file(file_path: Path) -> str:
    """
    Reads an uploaded CSV as text with an encoding fallback:
    1. UTF-8 with BOM support ('utf-8-sig').
    2. Latin-1, which can decode any byte sequence.
    """
    raw = Path(file_path).read_bytes()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info(
            f"INFO: UTF-8 decoding failed for {Path(file_path).name}. Retrying with 'latin-1'."
        )
        return raw.decode("latin-1")
