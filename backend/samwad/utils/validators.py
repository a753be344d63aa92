"""
Validators — Rule-based checks for ratings, names and uploaded file names.
"""
import os
import re
from typing import Optional


def validate_rating(rating) -> bool:
    """A rating is an integer star count from 1 to 5; 0 means "not rated"."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        return False
    return 1 <= rating <= 5


def file_extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def safe_filename(filename: Optional[str]) -> str:
    """Strip directories and anything outside [A-Za-z0-9._-] from a client file name."""
    if not filename:
        return ""
    base = os.path.basename(filename.replace("\\", "/")).strip()
    base = re.sub(r"\s+", "_", base)
    return re.sub(r"[^A-Za-z0-9._-]", "", base).lstrip(".")


def sanitize_name(name: Optional[str]) -> str:
    """Basic sanitization for names: collapse whitespace and strip."""
    if not name:
        return ""
    return re.sub(r"\s+", " ", name).strip()
