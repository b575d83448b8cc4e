"""SQLAlchemy ORM models — one file per table."""

from gitsummary.models.analysis_job import AnalysisJob
from gitsummary.models.commit import Commit
from gitsummary.models.credential import Credential
from gitsummary.models.export_job import ExportJob
from gitsummary.models.repository import Repository

__all__ = [
    "Credential",
    "Repository",
    "AnalysisJob",
    "Commit",
    "ExportJob",
]
