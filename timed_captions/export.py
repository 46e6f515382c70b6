"""Save a finished SRT document to disk.

WHY: Generation is pure, but users ultimately want a file they can drop
into an editor. Writing it directly could leave a truncated .srt behind if
the process dies mid-write, which an editor would happily import.

HOW: Content is written to a temporary file in the destination directory,
flushed, then atomically renamed over the target. The temporary file is
removed on every failure path.

RULES:
- filename is reduced to its base name (no directory traversal)
- ".srt" is appended when the name has no extension
- Encoding is UTF-8 so Korean and other non-Latin text survives
- Existing files with the same name are replaced
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "subtitle.srt"


def sanitize_filename(filename: str) -> str:
    """Return a safe base filename with an extension.

    Falls back to DEFAULT_FILENAME when nothing usable is left.
    """
    name = Path(filename.replace("\\", "/")).name.strip() if filename else ""
    if name in ("", ".", ".."):
        return DEFAULT_FILENAME
    if not Path(name).suffix:
        name += ".srt"
    return name


def export_captions(
    srt_text: str,
    filename: str = DEFAULT_FILENAME,
    output_dir: Optional[Union[str, Path]] = None,
) -> Path:
    """Write SRT text to output_dir/filename and return the final path.

    Args:
        srt_text: Serialized SRT content (may be empty).
        filename: Target file name; sanitized with sanitize_filename().
        output_dir: Destination directory. Defaults to the current directory.

    Returns:
        The path that now holds the content.

    Raises:
        FileNotFoundError: If output_dir does not exist.
        OSError: If the file cannot be written.
    """
    directory = Path(output_dir) if output_dir is not None else Path.cwd()
    if not directory.is_dir():
        raise FileNotFoundError("Output directory does not exist: {}".format(directory))

    target = directory / sanitize_filename(filename)
    fd, tmp_name = tempfile.mkstemp(prefix=".caption_", suffix=".tmp", dir=str(directory))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(srt_text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(str(tmp_path), str(target))
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise

    logger.info("Exported captions to %s (%d bytes)", target, len(srt_text.encode("utf-8")))
    return target
