"""
File Categories

Extension to category table used when items are dropped.

Author: AutoDrop Project
License: MIT
"""

from typing import Dict

IMAGE = "Image"
DOCUMENT = "Document"
VIDEO = "Video"
AUDIO = "Audio"
ARCHIVE = "Archive"
INSTALLER = "Installer"
FOLDER = "Folder"
UNKNOWN = "Unknown"

_CATEGORY_EXTENSIONS = {
    IMAGE: ["jpg", "jpeg", "png", "gif", "bmp", "webp", "ico", "svg", "tiff", "tif", "heic"],
    DOCUMENT: [
        "pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "txt",
        "rtf", "odt", "ods", "odp", "csv", "md"
    ],
    VIDEO: ["mp4", "avi", "mkv", "mov", "wmv", "flv", "webm", "m4v"],
    AUDIO: ["mp3", "wav", "flac", "aac", "ogg", "wma", "m4a"],
    ARCHIVE: ["zip", "rar", "7z", "tar", "gz", "bz2"],
    INSTALLER: ["exe", "msi", "msix", "deb", "rpm", "dmg", "pkg"],
}

EXTENSION_MAPPINGS: Dict[str, str] = {
    f".{ext}": category
    for category, extensions in _CATEGORY_EXTENSIONS.items()
    for ext in extensions
}


def normalize_extension(extension: str) -> str:
    """Lowercase an extension and make sure it carries a leading dot."""
    extension = (extension or "").strip().lower()
    if not extension:
        return ""
    return extension if extension.startswith(".") else f".{extension}"


def get_category(extension: str) -> str:
    """
    Get the category for a file extension.

    Args:
        extension: File extension, with or without the leading dot

    Returns:
        Category name, UNKNOWN for blank or unmapped extensions
    """
    normalized = normalize_extension(extension)
    if not normalized:
        return UNKNOWN
    return EXTENSION_MAPPINGS.get(normalized, UNKNOWN)
