"""
Version utilities - Read version from package metadata
"""

from importlib.metadata import version, PackageNotFoundError


def get_version() -> str:
    """
    Get version from package metadata

    Returns:
        Version string or fallback if not found
    """
    try:
        return version('radctl')
    except PackageNotFoundError:
        return "unknown"
