"""Test helper utilities for the job notifier test suite."""

from .factories import make_candidate, make_criteria, make_job, make_setting

__all__ = ["make_candidate", "make_criteria", "make_job", "make_setting"]
