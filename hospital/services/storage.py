from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional
import logging
import os
import secrets
import shutil
import time

from ..core.config import settings

logger = logging.getLogger(__name__)

@dataclass
class StoredFile:
    name: str
    url: str
    path: Path

class ReportStorage:
    """Medical report files kept under a fixed base directory.

    Records store ``<url_prefix>/<name>``; the absolute path is rebuilt from
    the base directory whenever the file is read or removed.
    """

    def __init__(self, base_dir: str, url_prefix: str):
        self.base_dir = Path(base_dir).resolve()
        self.url_prefix = url_prefix.rstrip("/")

    def generate_name(self, original_name: Optional[str]) -> str:
        extension = os.path.splitext(original_name or "")[1]
        millis = int(time.time() * 1000)
        return f"report-{millis}-{secrets.token_hex(6)}{extension}"

    def save(self, source: BinaryIO, original_name: Optional[str]) -> StoredFile:
        """Copy an uploaded stream into permanent storage."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        name = self.generate_name(original_name)
        path = self.base_dir / name

        source.seek(0)
        with open(path, "xb") as target:
            shutil.copyfileobj(source, target)

        return StoredFile(name=name, url=f"{self.url_prefix}/{name}", path=path)

    def path_for(self, file_url: str) -> Path:
        # Only the final component is trusted
        return self.base_dir / Path(file_url).name

    def exists(self, file_url: str) -> bool:
        return self.path_for(file_url).is_file()

    def delete(self, file_url: str) -> bool:
        """Remove a stored file; returns False when it was already gone."""
        path = self.path_for(file_url)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning(f"Stored file not found at {path}")
            return False
        return True

def get_report_storage() -> ReportStorage:
    """Report storage dependency."""
    return ReportStorage(settings.REPORTS_DIR, settings.REPORTS_URL_PREFIX)
