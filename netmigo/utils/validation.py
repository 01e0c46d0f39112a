"""Input validation utilities."""


def validate_remote_path(path: str) -> str:
    """Validate a remote file path before it is put on a command line.

    Args:
        path: The remote path to validate

    Returns:
        The path, unchanged

    Raises:
        ValueError: If the path is empty, a directory path, or contains
            a null byte or newline
    """
    if not path or not path.strip():
        raise ValueError("Remote path cannot be empty")

    # Check for null bytes (can bypass validation in some systems)
    if "\x00" in path:
        raise ValueError(f"Remote path contains null byte: {path!r}")

    if "\n" in path or "\r" in path:
        raise ValueError(f"Remote path contains a line break: {path!r}")

    if path.endswith("/"):
        raise ValueError(f"Remote path names a directory: {path}")

    return path
