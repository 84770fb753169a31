"""Tests for the database clients."""
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from resume_worker.db.auth import AuthDatabase
from resume_worker.db.jobs import JobsDatabase
from resume_worker.db.management import ManagementDatabase
from resume_worker.db.posts import PostsDatabase
from resume_worker.exceptions import DataAccessError
from resume_worker.models.jobs import JobStatus


def _with_pool(db, **methods):
    pool = MagicMock()
    for name, mock in methods.items():
        setattr(pool, name, mock)
    db._pool = pool
    return pool


class TestPostgresClient:
    @pytest.mark.asyncio
    async def test_closed_pool_raises_data_access_error(self):
        db = JobsDatabase("postgresql://localhost/jobs")
        with pytest.raises(DataAccessError, match=r"\[jobs\]"):
            await db.fetch("SELECT 1")

    @pytest.mark.asyncio
    async def test_driver_errors_are_wrapped(self):
        db = PostsDatabase("postgresql://localhost/posts")
        _with_pool(db, fetch=AsyncMock(side_effect=OSError("connection reset")))

        with pytest.raises(DataAccessError) as exc_info:
            await db.get_posts("user-1")
        assert exc_info.value.database == "posts"

    @pytest.mark.asyncio
    async def test_ping(self):
        db = ManagementDatabase("postgresql://localhost/management")
        assert not await db.ping()

        _with_pool(db, fetchval=AsyncMock(return_value=1))
        assert await db.ping()


class TestJobsDatabase:
    @pytest.mark.asyncio
    async def test_get_job_decodes_metadata(self):
        db = JobsDatabase("postgresql://localhost/jobs")
        _with_pool(
            db,
            fetchrow=AsyncMock(
                return_value={
                    "id": "job-1",
                    "user_id": "user-1",
                    "job_description": "Engineer",
                    "status": "processing",
                    "metadata": '{"attempt": 2}',
                    "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
                    "updated_at": None,
                }
            ),
        )

        record = await db.get_job("job-1")

        assert record.status == JobStatus.PROCESSING
        assert record.metadata == {"attempt": 2}

    @pytest.mark.asyncio
    async def test_get_job_missing(self):
        db = JobsDatabase("postgresql://localhost/jobs")
        _with_pool(db, fetchrow=AsyncMock(return_value=None))
        assert await db.get_job("job-404") is None

    @pytest.mark.asyncio
    async def test_update_status_guards_terminal_rows(self):
        db = JobsDatabase("postgresql://localhost/jobs")
        pool = _with_pool(db, execute=AsyncMock(return_value="UPDATE 1"))

        assert await db.update_status("job-1", JobStatus.COMPLETED, {"filePath": "resumes/u/x.pdf"})

        query, status, metadata, job_id = pool.execute.await_args.args
        assert "NOT IN ('completed', 'cancelled')" in query
        assert status == "completed"
        assert json.loads(metadata) == {"filePath": "resumes/u/x.pdf"}
        assert job_id == "job-1"

    @pytest.mark.asyncio
    async def test_update_status_on_terminal_row_is_skipped(self):
        db = JobsDatabase("postgresql://localhost/jobs")
        _with_pool(db, execute=AsyncMock(return_value="UPDATE 0"))
        assert not await db.update_status("job-1", JobStatus.FAILED, {"error": "late failure"})

    @pytest.mark.asyncio
    async def test_create_artifact_record(self):
        db = JobsDatabase("postgresql://localhost/jobs")
        pool = _with_pool(db, execute=AsyncMock(return_value="INSERT 0 1"))

        await db.create_artifact_record("job-1", "user-1", "resumes/user-1/a.pdf", {"fileSize": 10})

        args = pool.execute.await_args.args
        assert "INSERT INTO resumes" in args[0]
        assert args[1:4] == ("job-1", "user-1", "resumes/user-1/a.pdf")
        assert json.loads(args[4]) == {"fileSize": 10}


class TestSourceDatabases:
    @pytest.mark.asyncio
    async def test_experiences_are_typed(self):
        db = ManagementDatabase("postgresql://localhost/management")
        pool = _with_pool(
            db,
            fetch=AsyncMock(
                return_value=[
                    {"id": "exp-1", "user_id": "user-1", "company": "Acme", "position": "Engineer",
                     "description": "Built things", "location": None},
                ]
            ),
        )

        experiences = await db.get_experiences("user-1", limit=10)

        assert experiences[0].company == "Acme"
        assert experiences[0].content == "Built things"
        assert pool.fetch.await_args.args[1:] == ("user-1", 10)

    @pytest.mark.asyncio
    async def test_posts_use_excerpt_as_content(self):
        db = PostsDatabase("postgresql://localhost/posts")
        _with_pool(db, fetch=AsyncMock(return_value=[{"id": "p-1", "title": "T", "excerpt": "Short summary"}]))

        posts = await db.get_posts("user-1")

        assert posts[0].content == "Short summary"


class TestAuthDatabase:
    @pytest.mark.asyncio
    async def test_user_lookup(self):
        db = AuthDatabase("postgresql://localhost/auth")
        _with_pool(
            db,
            fetchrow=AsyncMock(return_value={"id": "u", "first_name": "Ada", "last_name": None, "email": "a@b.co"}),
        )

        user = await db.get_user_by_id("u")

        assert user.full_name == "Ada"
        assert user.email == "a@b.co"

    @pytest.mark.asyncio
    async def test_lookup_failure_returns_none(self):
        db = AuthDatabase("postgresql://localhost/auth")
        _with_pool(db, fetchrow=AsyncMock(side_effect=OSError("connection refused")))

        assert await db.get_user_by_id("u") is None
