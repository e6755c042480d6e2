"""
Helpers for presenting attachment metadata.
"""

SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def format_file_size(size_bytes: int) -> str:
    """Render a byte count as e.g. '2 KB' or '1.5 MB'"""
    if size_bytes <= 0:
        return "0 Bytes"

    k = 1024
    i = 0
    while i < len(SIZE_UNITS) - 1 and size_bytes >= k ** (i + 1):
        i += 1

    value = round(size_bytes / k ** i, 2)
    # 2.00 -> "2", 1.50 -> "1.5"
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[i]}"
