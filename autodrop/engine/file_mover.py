"""
File Mover

Moves single files and folders into destination folders, never overwriting
unless asked to, and moves them back on undo.

Author: AutoDrop Project
License: MIT
"""

import asyncio
import errno
import os
import shutil
import tempfile
from typing import Optional

from ..core.cancellation import CancellationToken, check_cancelled
from ..core.errors import FileOperationError, NotFoundError, ValidationError
from ..core.models import MoveOperation
from ..utils.file_ops import get_unique_path, is_blank, path_exists
from ..utils.logger import get_logger

logger = get_logger(__name__)


class FileMover:
    """
    Atomic move and undo of one file or folder.

    Features:
    - Destination folders created on demand
    - Collision-free naming with " (n)" before the extension
    - Explicit overwrite for replace policies
    - Undo back to the original path, renaming if it is occupied again
    """

    async def move(
        self,
        source_path: str,
        destination_folder: str,
        cancel: Optional[CancellationToken] = None,
        overwrite: bool = False
    ) -> MoveOperation:
        """
        Move a file or folder into destination_folder.

        Args:
            source_path: File or folder to move
            destination_folder: Folder to move it into
            cancel: Optional cancellation token, checked before any I/O
            overwrite: Replace an existing file of the same name instead of renaming

        Returns:
            MoveOperation describing where the item ended up

        Raises:
            ValidationError: If a path is blank
            NotFoundError: If the source does not exist
            FileOperationError: If the filesystem refuses the move
        """
        if is_blank(source_path):
            raise ValidationError("Source path is required")
        if is_blank(destination_folder):
            raise ValidationError("Destination folder is required")

        check_cancelled(cancel)

        if not path_exists(source_path):
            raise NotFoundError(f"Source file or folder not found: {source_path}")

        try:
            return await asyncio.to_thread(self._move, source_path, destination_folder, overwrite)
        except (NotFoundError, FileOperationError):
            raise
        except OSError as e:
            logger.error(f"Error moving {source_path} to {destination_folder}: {e}")
            raise FileOperationError(f"Failed to move {os.path.basename(source_path)}: {e}") from e

    def _move(self, source_path: str, destination_folder: str, overwrite: bool) -> MoveOperation:
        os.makedirs(destination_folder, exist_ok=True)

        is_directory = os.path.isdir(source_path)
        item_name = os.path.basename(os.path.normpath(source_path))
        size_bytes = 0 if is_directory else os.path.getsize(source_path)

        destination_path = os.path.join(destination_folder, item_name)
        if overwrite and not is_directory and os.path.isfile(destination_path):
            logger.debug(f"Replacing existing file: {destination_path}")
            self._replace_file(source_path, destination_path)
        else:
            destination_path = get_unique_path(destination_folder, item_name)
            logger.debug(f"Moving {source_path} -> {destination_path}")
            shutil.move(source_path, destination_path)

        return MoveOperation(
            source_path=source_path,
            destination_path=destination_path,
            item_name=item_name,
            is_directory=is_directory,
            size_bytes=size_bytes
        )

    @staticmethod
    def _replace_file(source_path: str, destination_path: str):
        """Overwrite destination_path in one step; the old file stays if the move fails."""
        try:
            os.replace(source_path, destination_path)
            return
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise

        # Different filesystem: stage a copy beside the destination first
        fd, staged_path = tempfile.mkstemp(prefix=".autodrop-", dir=os.path.dirname(destination_path))
        os.close(fd)
        try:
            shutil.copy2(source_path, staged_path)
            os.replace(staged_path, destination_path)
        except OSError:
            if os.path.exists(staged_path):
                os.remove(staged_path)
            raise
        os.remove(source_path)

    async def undo(self, operation: MoveOperation) -> bool:
        """
        Move an item back to where it came from.

        Args:
            operation: Operation returned by move()

        Returns:
            True if the item was moved back, False if it cannot be undone

        Raises:
            FileOperationError: If the filesystem refuses the move
        """
        if not operation.can_undo:
            logger.debug(f"Operation already undone: {operation.item_name}")
            return False

        if not path_exists(operation.destination_path):
            logger.warning(f"Cannot undo, item no longer at destination: {operation.destination_path}")
            return False

        try:
            restored_path = await asyncio.to_thread(self._undo, operation)
        except OSError as e:
            logger.error(f"Error undoing move of {operation.item_name}: {e}")
            raise FileOperationError(f"Failed to undo {operation.item_name}: {e}") from e

        operation.can_undo = False
        logger.info(f"Restored {operation.item_name} to {restored_path}")
        return True

    def _undo(self, operation: MoveOperation) -> str:
        source_dir = os.path.dirname(operation.source_path)
        if source_dir:
            os.makedirs(source_dir, exist_ok=True)

        target_path = operation.source_path
        if path_exists(target_path):
            target_path = get_unique_path(source_dir, os.path.basename(target_path))

        shutil.move(operation.destination_path, target_path)
        return target_path

    async def delete_source(self, source_path: str, cancel: Optional[CancellationToken] = None):
        """
        Delete a source file whose content already exists at the destination.

        Raises:
            NotFoundError: If the file does not exist
            FileOperationError: If deletion fails
        """
        check_cancelled(cancel)

        if not os.path.isfile(source_path):
            raise NotFoundError(f"Source file not found: {source_path}")

        try:
            await asyncio.to_thread(os.remove, source_path)
        except OSError as e:
            raise FileOperationError(f"Failed to delete {os.path.basename(source_path)}: {e}") from e

        logger.debug(f"Deleted source (exact duplicate): {source_path}")

    @staticmethod
    def exists(path: str) -> bool:
        return path_exists(path)

    @staticmethod
    def get_unique_path(destination_folder: str, name: str) -> str:
        return get_unique_path(destination_folder, name)
