"""
Resume job processor.
Sequences data fetch, enrichment, rendering and storage for one job.
"""
import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from resume_worker.config import Settings, settings as default_settings
from resume_worker.db.auth import AuthDatabase
from resume_worker.db.jobs import JobsDatabase
from resume_worker.db.management import ManagementDatabase
from resume_worker.db.posts import PostsDatabase
from resume_worker.exceptions import JobNotFoundError, RenderError, RenderTimeoutError
from resume_worker.models.entities import EnhancementStats, EnrichedData
from resume_worker.models.jobs import Job, JobStatus, UserProfile
from resume_worker.models.payload import validate_payload
from resume_worker.services.content.enricher import ContentEnricher, EnrichmentConfig
from resume_worker.services.payload_assembler import assemble_payload
from resume_worker.services.render_client import RenderResponse, RenderServiceClient
from resume_worker.services.retry import RetryPolicy, with_retry
from resume_worker.services.storage import ArtifactStorage

logger = logging.getLogger(__name__)

ERROR_MESSAGE_MAX = 1000

# (EnrichedData attribute, enrichment section)
ENRICHED_SECTIONS: List[Tuple[str, str]] = [
    ("experiences", "experience"),
    ("projects", "project"),
    ("posts", "post"),
    ("technical_writings", "publication"),
    ("system_designs", "publication"),
]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResumeJobProcessor:
    """Drives one job from ``processing`` to ``completed`` or ``failed``."""

    def __init__(
        self,
        jobs_db: JobsDatabase,
        posts_db: PostsDatabase,
        management_db: ManagementDatabase,
        enricher: ContentEnricher,
        render_client: RenderServiceClient,
        storage: ArtifactStorage,
        auth_db: Optional[AuthDatabase] = None,
        retry_policy: Optional[RetryPolicy] = None,
        settings: Settings = default_settings,
    ):
        self.jobs_db = jobs_db
        self.posts_db = posts_db
        self.management_db = management_db
        self.enricher = enricher
        self.render_client = render_client
        self.storage = storage
        self.auth_db = auth_db
        self.retry_policy = retry_policy
        self.settings = settings

    async def process_job(self, job: Job) -> None:
        """
        Process one resume generation job.

        Args:
            job: Decoded queue message

        Raises:
            Any failure after the job has been marked failed, so the consumer
            can apply its redelivery policy.
        """
        start = time.monotonic()

        record = await with_retry(lambda: self.jobs_db.get_job(job.jobId), "fetch_job", self.retry_policy)
        if record is None:
            raise JobNotFoundError(job.jobId)
        if record.status.is_terminal:
            logger.info(f"Job {job.jobId} already {record.status.value}, skipping")
            return

        try:
            await self.jobs_db.update_status(job.jobId, JobStatus.PROCESSING, {"processingStartedAt": _now()})
            logger.info(f"Processing resume generation job {job.jobId} for user {job.userId}")

            data = await self._fetch_source_data(job.userId)

            if job.jobDescription.strip() and self.settings.AI_ENRICHMENT_ENABLED:
                data = await self._enrich(job, data)

            profile = await self._resolve_profile(job)

            payload = assemble_payload(job, data, profile)
            validate_payload(payload)

            response = await self._render(job, payload)
            file_path = await self._store(job, response)

            duration_ms = int((time.monotonic() - start) * 1000)
            await self.jobs_db.update_status(
                job.jobId,
                JobStatus.COMPLETED,
                {
                    "resumeJobId": response.jobId,
                    "pdfUrl": response.pdfUrl,
                    "filePath": file_path,
                    "completedAt": _now(),
                    "processingDurationMs": duration_ms,
                },
            )
            logger.info(f"Resume job {job.jobId} completed in {duration_ms}ms")

        except Exception as e:
            duration_ms = int((time.monotonic() - start) * 1000)
            logger.error(f"Resume job {job.jobId} failed after {duration_ms}ms: {e}")
            await self._mark_failed(job, e)
            raise

    async def _mark_failed(self, job: Job, error: Exception) -> None:
        message = (str(error) or type(error).__name__)[:ERROR_MESSAGE_MAX]
        try:
            await self.jobs_db.update_status(
                job.jobId,
                JobStatus.FAILED,
                {"error": message, "failedAt": _now()},
            )
        except Exception as status_error:
            # The original failure is what the consumer must see.
            logger.error(f"Could not record failure for job {job.jobId}: {status_error}")

    async def _fetch_source_data(self, user_id: str) -> EnrichedData:
        """Fetch all source records; each source group runs concurrently."""
        limit = self.settings.DATA_FETCH_LIMIT
        policy = self.retry_policy

        writings, posts, designs = await asyncio.gather(
            with_retry(lambda: self.posts_db.get_technical_writings(user_id, limit), "fetch_technical_writings", policy),
            with_retry(lambda: self.posts_db.get_posts(user_id, limit), "fetch_posts", policy),
            with_retry(lambda: self.posts_db.get_system_designs(user_id, limit), "fetch_system_designs", policy),
        )
        projects, experiences = await asyncio.gather(
            with_retry(lambda: self.management_db.get_projects(user_id, limit), "fetch_projects", policy),
            with_retry(lambda: self.management_db.get_experiences(user_id, limit), "fetch_experiences", policy),
        )

        logger.info(
            f"Fetched source data for user {user_id}: {len(experiences)} experiences, "
            f"{len(projects)} projects, {len(posts)} posts, {len(writings)} writings, {len(designs)} designs"
        )
        return EnrichedData(
            experiences=experiences,
            projects=projects,
            posts=posts,
            technical_writings=writings,
            system_designs=designs,
        )

    async def _enrich(self, job: Job, data: EnrichedData) -> EnrichedData:
        """Run enrichment per populated section; any failure degrades to raw data."""
        started = time.monotonic()
        try:
            config = EnrichmentConfig.from_job(job, self.settings)
            updates: Dict[str, Any] = {}
            sections_enabled: List[str] = []

            for attr, section in ENRICHED_SECTIONS:
                items = getattr(data, attr)
                section_config = config.section(section)
                if not items or not section_config.enable:
                    continue
                updates[attr] = await self.enricher.enhance_items(items, section, section_config, config)
                if section not in sections_enabled:
                    sections_enabled.append(section)

            tokens = sum(
                item.enhancement.tokens_used
                for items in updates.values()
                for item in items
                if item.enhancement is not None
            )
            updates["enhancement_stats"] = EnhancementStats(
                sections_enabled=sections_enabled,
                total_tokens_used=tokens,
                duration_ms=int((time.monotonic() - started) * 1000),
            )
            return data.model_copy(update=updates)

        except Exception as e:
            logger.error(f"AI enrichment failed for job {job.jobId}, continuing with raw content: {e}")
            return data

    async def _resolve_profile(self, job: Job) -> Optional[UserProfile]:
        if job.userName and job.userEmail:
            return UserProfile(name=job.userName, email=job.userEmail)
        if self.auth_db is None:
            return None

        try:
            user = await self.auth_db.get_user_by_id(job.userId)
        except Exception as e:
            logger.warning(f"Identity lookup failed for user {job.userId}, using defaults: {e}")
            return None
        if user is None:
            return None
        return UserProfile(name=job.userName or user.full_name, email=job.userEmail or user.email)

    async def _render(self, job: Job, payload: Dict[str, Any]) -> RenderResponse:
        response = await self.render_client.render(job.userId, payload)
        logger.info(f"Resume render requested for job {job.jobId} (render job {response.jobId})")

        if response.error:
            raise RenderError(response.error)
        if response.is_pending and response.jobId:
            response = await self._wait_for_render(response.jobId)
        if not response.has_document:
            raise RenderError(response.error or "no document returned")
        return response

    async def _wait_for_render(self, render_job_id: str) -> RenderResponse:
        """Poll the render service until it finishes or the wait window closes."""
        max_wait = self.settings.RENDER_MAX_WAIT_SECONDS
        interval = self.settings.RENDER_POLL_INTERVAL_SECONDS
        elapsed = 0.0

        while elapsed < max_wait:
            status = await with_retry(
                lambda: self.render_client.get_status(render_job_id), "render_status", self.retry_policy
            )
            if status.status == "failed" or status.error:
                raise RenderError(status.error or "Unknown error")
            if status.status == "completed" or status.has_document:
                return status

            await asyncio.sleep(interval)
            elapsed += interval

        raise RenderTimeoutError(elapsed)

    async def _store(self, job: Job, response: RenderResponse) -> str:
        if response.pdfUrl:
            data = await with_retry(
                lambda: self.render_client.download(response.pdfUrl), "download_resume", self.retry_policy
            )
            extension = "pdf"
        else:
            data = (response.html or "").encode("utf-8")
            extension = "html"

        file_path = await self.storage.save(job.userId, data, extension)
        await self.jobs_db.create_artifact_record(
            job.jobId,
            job.userId,
            file_path,
            {
                "fileName": f"resume_{datetime.now(timezone.utc).date().isoformat()}.{extension}",
                "fileSize": len(data),
                "format": extension,
                "generatedAt": _now(),
                "jobDescription": job.jobDescription[:500],
            },
        )
        logger.info(f"Resume stored for job {job.jobId} at {file_path} ({len(data)} bytes)")
        return file_path
