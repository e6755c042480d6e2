"""
Storage key generation for attachment blobs.

Keys follow ``{budget_id}/{upload_timestamp_ms}-{file_name}`` so every
budget owns a prefix in the bucket and keys are unique without a central
counter.
"""
import os
import re

# ASCII control characters, never valid inside a key
CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')


def sanitize_filename(filename: str) -> str:
    """
    Make a user-supplied filename safe to use inside a storage key.

    Only the directory part and control characters are removed. Spaces,
    dots and non-ASCII characters are kept as the user named the file.

    Args:
        filename: Original filename

    Returns:
        Filename without directories
    """
    # Drop any directory part, including Windows separators
    filename = os.path.basename(filename.replace("\\", "/"))
    filename = CONTROL_CHARS.sub("", filename)

    if filename in ("", ".", ".."):
        return "file"
    return filename


def build_storage_path(budget_id: str, timestamp_ms: int, file_name: str) -> str:
    """
    Build the storage key for an attachment blob.

    Args:
        budget_id: Owning budget id, used as the key prefix
        timestamp_ms: Upload time in milliseconds since the epoch
        file_name: Original filename

    Returns:
        Key of the form ``{budget_id}/{timestamp_ms}-{file_name}``
    """
    return f"{budget_id}/{timestamp_ms}-{sanitize_filename(file_name)}"
