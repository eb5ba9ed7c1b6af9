"""
JSON Document Store

Whole-document read/write of pydantic models under the application data
directory. Writes go to a temporary file that replaces the target, so a
crash never leaves a half-written document behind.

Author: AutoDrop Project
License: MIT
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..utils.logger import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class JsonStore:
    """Reads and writes JSON documents inside one directory."""

    def __init__(self, data_dir: str):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding the documents (created on first write)
        """
        self.data_dir = Path(data_dir)

    def path_for(self, file_name: str) -> Path:
        return self.data_dir / file_name

    def read(self, file_name: str, model: Type[ModelT]) -> Optional[ModelT]:
        """
        Load a document.

        Args:
            file_name: Document name inside the data directory
            model: Pydantic model to validate the content against

        Returns:
            The parsed model, or None if the file is missing or corrupt
        """
        path = self.path_for(file_name)
        if not path.exists():
            return None

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return model.model_validate(data)
        except (json.JSONDecodeError, PydanticValidationError) as e:
            logger.warning(f"Ignoring corrupt document {path}: {e}")
            return None

    def write(self, file_name: str, document: BaseModel):
        """
        Replace a document with the serialized model.

        Args:
            file_name: Document name inside the data directory
            document: Model to serialize
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(file_name)

        fd, tmp_path = tempfile.mkstemp(dir=str(self.data_dir), prefix=f".{file_name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(document.model_dump_json(indent=2))
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        logger.debug(f"Saved {path}")
