"""Summarizer engine — per-commit plain-language summaries."""

from gitsummary.engines.summarizer.runner import BatchResult, DrainResult, SummarizerRunner

__all__ = [
    "BatchResult",
    "DrainResult",
    "SummarizerRunner",
]
