"""
Deduplicator

Decides whether a destination path already holds content equivalent to a
source file: size first, then size and modification time for very large
files, otherwise a streamed SHA-256 comparison.

Author: AutoDrop Project
License: MIT
"""

import asyncio
import os
from datetime import datetime, timezone
from typing import Optional

from ..config.schema import DuplicateConfig
from ..core.cancellation import CancellationToken, check_cancelled
from ..core.errors import NotFoundError, OperationCancelledError, ValidationError
from ..core.models import DuplicateCheckResult, DuplicateComparisonMethod, FileComparisonInfo
from ..utils.file_ops import calculate_file_hash, is_blank
from ..utils.logger import get_logger

logger = get_logger(__name__)


class Deduplicator:
    """
    Content-based duplicate detection between a source and a destination.

    Features:
    - Size comparison before any content is read
    - Size and date comparison above the hash size ceiling
    - Chunked SHA-256 hashing with cancellation checks per chunk
    - Every comparison reads the current file content
    """

    HASH_ALGORITHM = 'sha256'
    DEFAULT_MAX_HASH_FILE_SIZE = 100 * 1024 * 1024  # 100 MiB
    DEFAULT_CHUNK_SIZE = 8192  # 8KB chunks for hashing
    DEFAULT_DATE_TOLERANCE = 2.0  # seconds

    def __init__(
        self,
        enabled: bool = True,
        max_hash_file_size: int = DEFAULT_MAX_HASH_FILE_SIZE,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        date_tolerance_seconds: float = DEFAULT_DATE_TOLERANCE
    ):
        """
        Initialize deduplicator.

        Args:
            enabled: When False every check reports no duplicate without I/O
            max_hash_file_size: Files above this size skip hashing (bytes)
            chunk_size: Read size used while hashing (bytes)
            date_tolerance_seconds: Modification time tolerance for size/date comparison
        """
        self.is_enabled = enabled
        self.max_hash_file_size_bytes = max_hash_file_size
        self.chunk_size = chunk_size
        self.date_tolerance_seconds = date_tolerance_seconds

        logger.debug("Deduplicator initialized")

    @classmethod
    def from_config(cls, config: DuplicateConfig) -> 'Deduplicator':
        return cls(
            enabled=config.enabled,
            max_hash_file_size=config.max_hash_file_size,
            chunk_size=config.chunk_size,
            date_tolerance_seconds=config.date_tolerance_seconds
        )

    async def compute_file_hash(
        self,
        file_path: str,
        cancel: Optional[CancellationToken] = None
    ) -> str:
        """
        Calculate the SHA-256 hash of a file.

        Args:
            file_path: Path to file
            cancel: Optional cancellation token, checked before every chunk

        Returns:
            Lowercase hex digest

        Raises:
            ValidationError: If the path is blank
            NotFoundError: If the file does not exist
            OperationCancelledError: If cancelled
        """
        if is_blank(file_path):
            raise ValidationError("File path is required")

        check_cancelled(cancel)

        if not os.path.isfile(file_path):
            raise NotFoundError(f"File not found: {file_path}")

        try:
            return await asyncio.to_thread(self._hash_file, file_path, cancel)
        except FileNotFoundError as e:
            raise NotFoundError(f"File not found: {file_path}") from e

    def _hash_file(self, file_path: str, cancel: Optional[CancellationToken]) -> str:
        logger.debug(f"Calculating {self.HASH_ALGORITHM} hash for {os.path.basename(file_path)}")
        return calculate_file_hash(
            file_path,
            algorithm=self.HASH_ALGORITHM,
            chunk_size=self.chunk_size,
            cancel=cancel
        )

    async def check_for_duplicate(
        self,
        source_path: str,
        destination_path: str,
        cancel: Optional[CancellationToken] = None
    ) -> DuplicateCheckResult:
        """
        Check whether destination_path holds the same content as source_path.

        Args:
            source_path: File about to be moved
            destination_path: Path the file would land on
            cancel: Optional cancellation token

        Returns:
            DuplicateCheckResult; failures are reported through error_message

        Raises:
            OperationCancelledError: If cancelled, including before the call
        """
        if is_blank(source_path):
            return DuplicateCheckResult.error("Source path is required")
        if is_blank(destination_path):
            return DuplicateCheckResult.error("Destination path is required")

        check_cancelled(cancel)

        if not self.is_enabled:
            logger.debug("Duplicate detection is disabled, skipping check")
            return DuplicateCheckResult.no_duplicate()

        try:
            if not os.path.isfile(source_path):
                return DuplicateCheckResult.error(f"Source file not found: {source_path}")

            if not os.path.isfile(destination_path):
                logger.debug(f"Destination file does not exist: {destination_path}")
                return DuplicateCheckResult.no_duplicate()

            source_info = await asyncio.to_thread(self._describe, source_path)
            dest_info = await asyncio.to_thread(self._describe, destination_path)

            # Step 1: sizes differ, nothing to read
            if source_info.size != dest_info.size:
                logger.debug(f"Files have different sizes: {source_info.size} vs {dest_info.size}")
                return DuplicateCheckResult(
                    is_duplicate=False,
                    is_exact_match=False,
                    comparison_method=DuplicateComparisonMethod.SIZE_ONLY,
                    source=source_info,
                    destination=dest_info
                )

            # Step 2: too large to hash, fall back to size and date
            if max(source_info.size, dest_info.size) > self.max_hash_file_size_bytes:
                logger.debug(
                    f"File exceeds hash size limit ({source_info.size} > "
                    f"{self.max_hash_file_size_bytes}), using size/date comparison"
                )
                delta = abs((source_info.last_modified - dest_info.last_modified).total_seconds())
                same = delta < self.date_tolerance_seconds
                return DuplicateCheckResult(
                    is_duplicate=same,
                    # Size and date never prove identical content
                    is_exact_match=False,
                    comparison_method=DuplicateComparisonMethod.SIZE_AND_DATE,
                    source=source_info,
                    destination=dest_info
                )

            # Step 3: compare content
            check_cancelled(cancel)
            source_hash = await self.compute_file_hash(source_path, cancel)
            dest_hash = await self.compute_file_hash(destination_path, cancel)
            is_exact_match = source_hash == dest_hash

            logger.debug(
                f"Hash comparison result: {is_exact_match} "
                f"(source: {source_hash[:8]}, dest: {dest_hash[:8]})"
            )

            return DuplicateCheckResult(
                is_duplicate=is_exact_match,
                is_exact_match=is_exact_match,
                comparison_method=DuplicateComparisonMethod.HASH,
                source=FileComparisonInfo(
                    file_path=source_info.file_path,
                    size=source_info.size,
                    last_modified=source_info.last_modified,
                    hash=source_hash
                ),
                destination=FileComparisonInfo(
                    file_path=dest_info.file_path,
                    size=dest_info.size,
                    last_modified=dest_info.last_modified,
                    hash=dest_hash
                )
            )

        except OperationCancelledError:
            logger.debug("Duplicate check cancelled")
            raise
        except OSError as e:
            logger.error(f"Error during duplicate detection for {source_path} -> {destination_path}: {e}")
            return DuplicateCheckResult.error(str(e))

    @staticmethod
    def _describe(file_path: str) -> FileComparisonInfo:
        stat = os.stat(file_path)
        return FileComparisonInfo(
            file_path=file_path,
            size=stat.st_size,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        )
