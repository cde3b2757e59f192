"""Utility functions for sanitization and validation."""

import bleach


def sanitize_feedback(text: str) -> str:
    """Sanitize grader feedback text.

    Strips all HTML so feedback is stored and shown as plain text.
    """
    sanitized = bleach.clean(text, tags=[], strip=True)
    return sanitized.strip()


def validate_points(points: float, max_points: float) -> bool:
    """Validate that awarded points are within acceptable range.

    Args:
        points: The points awarded
        max_points: Maximum allowed points for the question

    Returns:
        True if valid

    Raises:
        ValueError: If points fall outside [0, max_points]
    """
    if points < 0 or points > max_points:
        raise ValueError(f"Points {points} out of range [0, {max_points}]")

    return True
