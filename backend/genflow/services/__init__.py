"""Submission, polling, progress and orchestration services."""
