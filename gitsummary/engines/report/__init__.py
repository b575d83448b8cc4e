"""Report engine — workbooks with commit listing, file history and narrative."""

from gitsummary.engines.report.compiler import CompileResult, FileDescriptor, ReportCompiler
from gitsummary.engines.report.history import build_file_history, clean_message, is_merge_commit
from gitsummary.engines.report.narrative import fallback_summary, generate_narrative

__all__ = [
    "CompileResult",
    "FileDescriptor",
    "ReportCompiler",
    "build_file_history",
    "clean_message",
    "fallback_summary",
    "generate_narrative",
    "is_merge_commit",
]
