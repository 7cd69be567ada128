"""Error message sanitization for user-facing technical details."""

import re
from pathlib import Path

MAX_MESSAGE_LENGTH = 200


def sanitize_error(error: BaseException) -> str:
    """Sanitize an error message to avoid leaking local paths.

    Replaces the home directory with ``~``, strips directory components of
    absolute paths (keeping the file name) and truncates long messages.

    Example:
        >>> sanitize_error(FileNotFoundError("/var/lib/app/file.txt not found"))
        'file.txt not found'
    """
    try:
        error_str = str(error) or type(error).__name__

        sanitized = error_str.replace(str(Path.home()), "~")
        sanitized = re.sub(r"/[a-zA-Z0-9_/.-]*/", "", sanitized)

        if len(sanitized) > MAX_MESSAGE_LENGTH:
            sanitized = sanitized[:MAX_MESSAGE_LENGTH] + "..."

        return sanitized

    except Exception:
        return "Internal error occurred"
