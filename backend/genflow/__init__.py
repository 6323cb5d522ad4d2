"""genflow: provider-agnostic generation job client.

Submit a generation to ``POST /api/{mediaType}/{provider}``, follow the
job through ``GET /api/jobs/{jobId}`` and hand back a typed result.
"""

from genflow.schemas.jobs import MediaType, NormalizedStatus
from genflow.services.cancellation import CancellationToken
from genflow.services.generation_job import run_generation_job
from genflow.services.job_polling import poll_job_status
from genflow.services.job_status import normalize_job_status
from genflow.services.job_submission import post_provider_job

__version__ = "0.1.0"

__all__ = [
    "CancellationToken",
    "MediaType",
    "NormalizedStatus",
    "normalize_job_status",
    "poll_job_status",
    "post_provider_job",
    "run_generation_job",
]
