"""ExportJobDAO — export_jobs table operations."""

from gitsummary.dao.base import BaseDAO
from gitsummary.models.export_job import ExportJob


class ExportJobDAO(BaseDAO[ExportJob]):
    model = ExportJob
