"""Examination submission & grading backend for the college LMS."""
