"""Submission stage pipeline module."""

from .submission_pipeline import SubmissionPipeline, get_submission_pipeline

__all__ = [
    "SubmissionPipeline",
    "get_submission_pipeline",
]
