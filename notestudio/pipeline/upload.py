"""
Local checks for audio uploads.

These run before anything is sent anywhere: an upload with the wrong MIME
type or over the size limit never reaches the analysis service.
"""

from pathlib import Path
from typing import Dict, Optional, Union

from notestudio.config import UploadConfig
from notestudio.data.schema import AudioUpload
from notestudio.errors import Outcome, ValidationError

# Extension -> MIME type for files read from disk
EXTENSION_TYPES: Dict[str, str] = {
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".ogg": "audio/ogg",
}


def validate_upload(
    upload: AudioUpload,
    config: Optional[UploadConfig] = None,
) -> Outcome[AudioUpload]:
    """
    Check an upload's type and size.

    Example:
        >>> validate_upload(AudioUpload(filename="a.flac",
        ...                             content_type="audio/flac", data=b"x")).ok
        False
    """
    config = config or UploadConfig()

    if upload.content_type not in config.allowed_types:
        return Outcome.failure(ValidationError(
            f"Unsupported file type '{upload.content_type}'. Please use WAV, MP3, or OGG."
        ))

    if upload.size > config.max_bytes:
        return Outcome.failure(ValidationError(
            f"File is too large ({format_file_size(upload.size)}). "
            f"Maximum size is {format_file_size(config.max_bytes)}."
        ))

    return Outcome.success(upload)


def upload_from_path(path: Union[str, Path]) -> AudioUpload:
    """
    Read an audio file from disk. The MIME type comes from the extension;
    unknown extensions get "application/octet-stream" and fail validation.
    """
    path = Path(path)
    content_type = EXTENSION_TYPES.get(path.suffix.lower(), "application/octet-stream")
    return AudioUpload(filename=path.name, content_type=content_type, data=path.read_bytes())


def format_file_size(num_bytes: int) -> str:
    """
    Human-readable size.

    Example:
        >>> format_file_size(0)
        '0 Bytes'
        >>> format_file_size(1536)
        '1.5 KB'
        >>> format_file_size(100 * 1024 * 1024)
        '100.0 MB'
    """
    if num_bytes <= 0:
        return "0 Bytes"
    units = ["KB", "MB", "GB"]
    if num_bytes < 1024:
        return f"{num_bytes} Bytes"
    size = num_bytes / 1024
    i = 0
    while size >= 1024 and i < len(units) - 1:
        size /= 1024
        i += 1
    return f"{round(size, 2)} {units[i]}"
