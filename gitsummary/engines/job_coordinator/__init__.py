"""Job coordinator engine — ingestion job lifecycle and extraction dispatch."""

from gitsummary.engines.job_coordinator.coordinator import JobCoordinator
from gitsummary.engines.job_coordinator.dispatcher import DispatchPayload, ExtractionDispatcher
from gitsummary.engines.job_coordinator.polling import poll_job

__all__ = [
    "DispatchPayload",
    "ExtractionDispatcher",
    "JobCoordinator",
    "poll_job",
]
