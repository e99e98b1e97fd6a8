"""
Code snippets saved as downloadable files.

Files land in DOWNLOADS_DIR and are served by the static mount at /downloads.
"""

import logging
import re
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "javascript": ".js",
    "typescript": ".ts",
    "python": ".py",
    "java": ".java",
    "c": ".c",
    "cpp": ".cpp",
    "c++": ".cpp",
    "csharp": ".cs",
    "c#": ".cs",
    "php": ".php",
    "ruby": ".rb",
    "go": ".go",
    "rust": ".rs",
    "html": ".html",
    "css": ".css",
    "json": ".json",
    "xml": ".xml",
    "markdown": ".md",
    "md": ".md",
    "sql": ".sql",
}
DEFAULT_EXTENSION = ".txt"

_UNSAFE = re.compile(r"[^\w.-]")
_UNDERSCORES = re.compile(r"_{2,}")


def extension_for(language: str) -> str:
    return EXTENSIONS.get(language.strip().lower(), DEFAULT_EXTENSION)


def sanitize_filename(filename: str) -> str:
    cleaned = _UNDERSCORES.sub("_", _UNSAFE.sub("_", filename))
    return cleaned or "code"


def save_code(code: str, language: str, filename: str, downloads_dir: str) -> str:
    """Write `code` to a uniquely named file. Returns the stored file name."""
    file_id = uuid.uuid4().hex[:10]
    stored_name = f"{sanitize_filename(filename)}_{file_id}{extension_for(language)}"

    dir_path = Path(downloads_dir)
    dir_path.mkdir(parents=True, exist_ok=True)
    (dir_path / stored_name).write_text(code, encoding="utf-8")

    logger.info("Saved code download: %s", stored_name)
    return stored_name
