"""Human-readable file sizes."""

SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def format_file_size(size: int) -> str:
    """Render a byte count with base-1024 units, up to two decimals.

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
    """
    if size <= 0:
        return "0 Bytes"

    k = 1024
    # Largest unit whose scaled value is still >= 1
    i = 0
    while i < len(SIZE_UNITS) - 1 and size >= k ** (i + 1):
        i += 1

    value = f"{size / k ** i:.2f}".rstrip("0").rstrip(".")
    return f"{value} {SIZE_UNITS[i]}"
