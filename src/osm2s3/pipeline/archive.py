"""
Archiver - Zip packaging of export directories

Packs every regular file under an export directory into a stored (uncompressed)
zip. Entry names are paths relative to the directory root; directories get no
entries of their own.
"""

import logging
import os
import stat
import zipfile
from collections.abc import Iterator
from pathlib import Path

from ..types import ArchiveError
from ..utils import format_size

logger = logging.getLogger(__name__)

FILE_MODE = 0o755
# Fixed so identical exports give byte-identical archives
ENTRY_DATE_TIME = (1980, 1, 1, 0, 0, 0)


def iter_files(root: Path) -> Iterator[Path]:
    """Yield regular files under ``root`` in a stable, sorted order."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if path.is_file():
                yield path


class Archiver:
    """Stored-zip packager for Shapefile export directories."""

    def __init__(self, compression: int = zipfile.ZIP_STORED, file_mode: int = FILE_MODE):
        self.compression = compression
        self.file_mode = file_mode

    def _entry_info(self, name: str) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(name, date_time=ENTRY_DATE_TIME)
        info.compress_type = self.compression
        info.external_attr = (stat.S_IFREG | self.file_mode) << 16
        info.create_system = 3  # Unix, so the mode bits are honoured
        return info

    def archive(self, source_dir: Path, archive_path: Path) -> Path:
        """
        Zip ``source_dir`` into ``archive_path``.

        The archive is written next to its final location and renamed into
        place only once complete.

        Args:
            source_dir: Export directory to pack
            archive_path: Destination zip file

        Returns:
            Path to the finished archive

        Raises:
            ArchiveError: If the directory is missing or any read/write fails
        """
        source_dir = Path(source_dir)
        archive_path = Path(archive_path)
        if not source_dir.is_dir():
            raise ArchiveError(f"Export directory not found: {source_dir}")

        partial = archive_path.with_name(archive_path.name + ".part")
        count = 0
        try:
            with zipfile.ZipFile(partial, "w", compression=self.compression) as zf:
                for path in iter_files(source_dir):
                    name = path.relative_to(source_dir).as_posix()
                    logger.debug(f"adding file {path} as {name}")
                    zf.writestr(self._entry_info(name), path.read_bytes())
                    count += 1
            os.replace(partial, archive_path)
        except (OSError, zipfile.BadZipFile) as e:
            partial.unlink(missing_ok=True)
            raise ArchiveError(f"Failed to archive {source_dir} into {archive_path}: {e}") from e

        logger.info(f"Archived {count} file(s) into {archive_path} "
                    f"({format_size(archive_path.stat().st_size)})")
        return archive_path
