"""Examination grading services."""
