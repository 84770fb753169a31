"""Tests for the resume job processor."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from resume_worker.config import Settings
from resume_worker.db.auth import AuthUser
from resume_worker.exceptions import DataAccessError, JobNotFoundError, RenderError, RenderTimeoutError
from resume_worker.models.jobs import Job, JobStatus, ResumeJobRecord
from resume_worker.services.content.enricher import ContentEnricher
from resume_worker.services.job_processor import ResumeJobProcessor
from resume_worker.services.render_client import RenderResponse
from resume_worker.services.storage import ArtifactStorage


def _status_calls(jobs_db):
    return [(c.args[1], c.args[2]) for c in jobs_db.update_status.await_args_list]


@pytest.fixture
def settings():
    return Settings(RENDER_POLL_INTERVAL_SECONDS=1, RENDER_MAX_WAIT_SECONDS=3, DATA_FETCH_LIMIT=25)


@pytest.fixture
def jobs_db():
    db = MagicMock()
    db.get_job = AsyncMock(
        return_value=ResumeJobRecord(id="job-123", user_id="user-456", status=JobStatus.PENDING)
    )
    db.update_status = AsyncMock(return_value=True)
    db.create_artifact_record = AsyncMock()
    return db


@pytest.fixture
def posts_db(sample_posts):
    db = MagicMock()
    db.get_technical_writings = AsyncMock(return_value=[])
    db.get_posts = AsyncMock(return_value=sample_posts)
    db.get_system_designs = AsyncMock(return_value=[])
    return db


@pytest.fixture
def management_db(sample_experiences, sample_projects):
    db = MagicMock()
    db.get_projects = AsyncMock(return_value=sample_projects)
    db.get_experiences = AsyncMock(return_value=sample_experiences)
    return db


@pytest.fixture
def render_client():
    client = MagicMock()
    client.render = AsyncMock(
        return_value=RenderResponse(jobId="render-1", status="completed", pdfUrl="http://render/files/render-1.pdf")
    )
    client.get_status = AsyncMock()
    client.download = AsyncMock(return_value=b"%PDF-1.4 resume")
    return client


@pytest.fixture
def processor(jobs_db, posts_db, management_db, render_client, mock_content_provider, fast_retry, settings, tmp_path):
    return ResumeJobProcessor(
        jobs_db=jobs_db,
        posts_db=posts_db,
        management_db=management_db,
        enricher=ContentEnricher(mock_content_provider, retry_policy=fast_retry),
        render_client=render_client,
        storage=ArtifactStorage(tmp_path),
        retry_policy=fast_retry,
        settings=settings,
    )


class TestSuccessfulJobs:
    @pytest.mark.asyncio
    async def test_pdf_result_completes_job(self, processor, sample_job, jobs_db, render_client, tmp_path):
        await processor.process_job(sample_job)

        statuses = _status_calls(jobs_db)
        assert [s for s, _ in statuses] == [JobStatus.PROCESSING, JobStatus.COMPLETED]
        assert "processingStartedAt" in statuses[0][1]

        completed = statuses[1][1]
        assert completed["pdfUrl"] == "http://render/files/render-1.pdf"
        assert completed["resumeJobId"] == "render-1"
        assert completed["filePath"].endswith(".pdf")
        assert "completedAt" in completed
        assert completed["processingDurationMs"] >= 0

        render_client.download.assert_awaited_once_with("http://render/files/render-1.pdf")
        assert (tmp_path / completed["filePath"]).read_bytes() == b"%PDF-1.4 resume"

        job_id, user_id, file_path, meta = jobs_db.create_artifact_record.await_args.args
        assert (job_id, user_id, file_path) == ("job-123", "user-456", completed["filePath"])
        assert meta["fileSize"] == len(b"%PDF-1.4 resume")
        assert meta["jobDescription"] == sample_job.jobDescription[:500]

    @pytest.mark.asyncio
    async def test_html_result_is_stored(self, processor, sample_job, jobs_db, render_client, tmp_path):
        render_client.render.return_value = RenderResponse(jobId="render-2", status="completed", html="<h1>Resume</h1>")

        await processor.process_job(sample_job)

        completed = _status_calls(jobs_db)[-1][1]
        assert completed["filePath"].endswith(".html")
        assert completed["pdfUrl"] is None
        assert (tmp_path / completed["filePath"]).read_text() == "<h1>Resume</h1>"
        render_client.download.assert_not_called()

    @pytest.mark.asyncio
    async def test_pending_render_is_polled(self, processor, sample_job, jobs_db, render_client):
        render_client.render.return_value = RenderResponse(jobId="render-3", status="queued")
        render_client.get_status.side_effect = [
            RenderResponse(jobId="render-3", status="processing"),
            RenderResponse(jobId="render-3", status="completed", pdfUrl="/files/render-3.pdf"),
        ]

        with patch("resume_worker.services.job_processor.asyncio.sleep", new=AsyncMock()):
            await processor.process_job(sample_job)

        assert render_client.get_status.await_count == 2
        assert _status_calls(jobs_db)[-1][0] == JobStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_payload_uses_accepted_rewrites(self, processor, sample_job, render_client):
        await processor.process_job(sample_job)

        user_id, payload = render_client.render.await_args.args
        assert user_id == "user-456"
        experience = payload["experiences"][0]
        assert experience["_aiEnhanced"] is True
        assert experience["description"].startswith("• Led migration")
        assert "experience" in payload["metadata"]["ai_enriched_sections"]
        assert payload["metadata"]["ai_tokens_used"] > 0

    @pytest.mark.asyncio
    async def test_fetches_use_configured_limit(self, processor, sample_job, posts_db, management_db):
        await processor.process_job(sample_job)

        posts_db.get_posts.assert_awaited_once_with("user-456", 25)
        management_db.get_experiences.assert_awaited_once_with("user-456", 25)

    @pytest.mark.asyncio
    async def test_ai_failure_falls_back_to_raw_content(
        self, processor, sample_job, sample_experiences, mock_content_provider, render_client, jobs_db
    ):
        mock_content_provider.generate_content.side_effect = ConnectionError("ai service down")

        await processor.process_job(sample_job)

        payload = render_client.render.await_args.args[1]
        experience = payload["experiences"][0]
        assert experience["description"] == sample_experiences[0].description
        assert experience["_aiEnhanced"] is False
        assert _status_calls(jobs_db)[-1][0] == JobStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_no_job_description_skips_enrichment(self, processor, mock_content_provider, render_client):
        await processor.process_job(Job(jobId="job-123", userId="user-456"))

        mock_content_provider.generate_content.assert_not_called()
        payload = render_client.render.await_args.args[1]
        assert "ai_enriched_sections" not in payload["metadata"]

    @pytest.mark.asyncio
    async def test_profile_resolved_from_auth_database(self, processor, sample_job, render_client):
        auth_db = MagicMock()
        auth_db.get_user_by_id = AsyncMock(
            return_value=AuthUser(id="user-456", first_name="Ada", last_name="Lovelace", email="ada@example.org")
        )
        processor.auth_db = auth_db

        await processor.process_job(sample_job)

        profile = render_client.render.await_args.args[1]["profile"]
        assert profile == {"name": "Ada Lovelace", "email": "ada@example.org", "phone": "", "location": ""}

    @pytest.mark.asyncio
    async def test_job_identity_preferred_over_lookup(self, processor, render_client):
        auth_db = MagicMock()
        auth_db.get_user_by_id = AsyncMock()
        processor.auth_db = auth_db

        await processor.process_job(
            Job(jobId="job-123", userId="user-456", userName="Grace Hopper", userEmail="grace@example.org")
        )

        auth_db.get_user_by_id.assert_not_called()
        assert render_client.render.await_args.args[1]["profile"]["name"] == "Grace Hopper"


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_enriched_job_completes_with_pdf(self, processor, mock_content_provider, jobs_db, render_client):
        from resume_worker.services.llm.base import ContentGenerationResponse, ContentType

        bullets = (
            "• Built Go microservices handling 50k requests per second with p99 under 20ms\n"
            "• Cut infrastructure cost by 35% by consolidating Kubernetes clusters"
        )
        summary = "Deep dive into Postgres partitioning for high-volume event storage at scale."

        async def generate(request):
            content = bullets if request.type == ContentType.EXPERIENCE else summary
            return ContentGenerationResponse(content=content, tokens_used=50, model="test-model")

        mock_content_provider.generate_content.side_effect = generate
        job = Job(jobId="j1", userId="u1", jobDescription="Senior Go engineer. " + "Distributed systems. " * 200)

        await processor.process_job(job)

        payload = render_client.render.await_args.args[1]
        assert len(payload["jobDescription"]) == 2000
        assert all(entry["_aiEnhanced"] for entry in payload["experiences"] + payload["projects"] + payload["posts"])
        assert payload["posts"][0]["excerpt"] == summary
        assert payload["metadata"]["ai_enriched_sections"] == ["experience", "project", "post"]

        statuses = _status_calls(jobs_db)
        assert [s for s, _ in statuses] == [JobStatus.PROCESSING, JobStatus.COMPLETED]
        assert statuses[-1][1]["pdfUrl"] == "http://render/files/render-1.pdf"


class TestSkippedJobs:
    @pytest.mark.asyncio
    async def test_missing_job_record(self, processor, sample_job, jobs_db, render_client):
        jobs_db.get_job.return_value = None

        with pytest.raises(JobNotFoundError):
            await processor.process_job(sample_job)

        jobs_db.update_status.assert_not_called()
        render_client.render.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [JobStatus.COMPLETED, JobStatus.CANCELLED])
    async def test_terminal_job_is_not_reprocessed(self, processor, sample_job, jobs_db, render_client, status):
        jobs_db.get_job.return_value = ResumeJobRecord(id="job-123", user_id="user-456", status=status)

        await processor.process_job(sample_job)

        jobs_db.update_status.assert_not_called()
        render_client.render.assert_not_called()


class TestFailedJobs:
    @pytest.mark.asyncio
    async def test_renderer_error_fails_job(self, processor, sample_job, jobs_db, render_client):
        render_client.render.return_value = RenderResponse(error="internal")

        with pytest.raises(RenderError, match="Renderer error: internal"):
            await processor.process_job(sample_job)

        status, meta = _status_calls(jobs_db)[-1]
        assert status == JobStatus.FAILED
        assert meta["error"] == "Renderer error: internal"
        assert "failedAt" in meta
        jobs_db.create_artifact_record.assert_not_called()

    @pytest.mark.asyncio
    async def test_render_without_document_fails(self, processor, sample_job, jobs_db, render_client):
        render_client.render.return_value = RenderResponse(jobId="render-4", status="completed")

        with pytest.raises(RenderError):
            await processor.process_job(sample_job)

        assert _status_calls(jobs_db)[-1][0] == JobStatus.FAILED

    @pytest.mark.asyncio
    async def test_render_failure_during_polling(self, processor, sample_job, jobs_db, render_client):
        render_client.render.return_value = RenderResponse(jobId="render-5", status="processing")
        render_client.get_status.return_value = RenderResponse(jobId="render-5", status="failed", error="template crashed")

        with pytest.raises(RenderError, match="template crashed"):
            await processor.process_job(sample_job)

    @pytest.mark.asyncio
    async def test_render_timeout(self, processor, sample_job, jobs_db, render_client):
        render_client.render.return_value = RenderResponse(jobId="render-6", status="queued")
        render_client.get_status.return_value = RenderResponse(jobId="render-6", status="processing")

        with patch("resume_worker.services.job_processor.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(RenderTimeoutError):
                await processor.process_job(sample_job)

        assert render_client.get_status.await_count == 3
        status, meta = _status_calls(jobs_db)[-1]
        assert status == JobStatus.FAILED
        assert meta["error"] == "Resume generation timeout"

    @pytest.mark.asyncio
    async def test_source_fetch_failure_fails_job_after_retries(self, processor, sample_job, jobs_db, management_db):
        management_db.get_experiences.side_effect = DataAccessError("management", "connection refused")

        with pytest.raises(DataAccessError):
            await processor.process_job(sample_job)

        assert management_db.get_experiences.await_count == 3
        assert _status_calls(jobs_db)[-1][0] == JobStatus.FAILED

    @pytest.mark.asyncio
    async def test_error_message_is_truncated(self, processor, sample_job, jobs_db, render_client):
        render_client.render.side_effect = RuntimeError("boom " * 500)

        with pytest.raises(RuntimeError):
            await processor.process_job(sample_job)

        assert len(_status_calls(jobs_db)[-1][1]["error"]) == 1000

    @pytest.mark.asyncio
    async def test_status_write_failure_does_not_mask_error(self, processor, sample_job, jobs_db, render_client):
        render_client.render.return_value = RenderResponse(error="internal")
        jobs_db.update_status.side_effect = [True, DataAccessError("jobs", "connection lost")]

        with pytest.raises(RenderError):
            await processor.process_job(sample_job)
