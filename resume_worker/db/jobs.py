"""Jobs database: resume job status and stored resume records."""
import json
import logging
from typing import Any, Dict, Optional

from resume_worker.db.connection import PostgresClient
from resume_worker.models.jobs import JobStatus, ResumeJobRecord

logger = logging.getLogger(__name__)


class JobsDatabase(PostgresClient):
    name = "jobs"

    async def get_job(self, job_id: str) -> Optional[ResumeJobRecord]:
        row = await self.fetchrow(
            """
            SELECT id, user_id, job_description, status, metadata, created_at, updated_at
            FROM resume_jobs
            WHERE id = $1
            """,
            job_id,
        )
        if row is None:
            return None
        metadata = row.get("metadata")
        if isinstance(metadata, str):
            row["metadata"] = json.loads(metadata or "{}")
        row["id"] = str(row["id"])
        row["user_id"] = str(row["user_id"])
        return ResumeJobRecord.model_validate(row)

    async def update_status(self, job_id: str, status: JobStatus, metadata: Optional[Dict[str, Any]] = None) -> bool:
        """
        Transition a job's status.

        Completed and cancelled jobs are never transitioned again.

        Returns:
            True when a row was updated
        """
        result = await self.execute(
            """
            UPDATE resume_jobs
            SET status = $1, metadata = $2, updated_at = NOW()
            WHERE id = $3 AND status NOT IN ('completed', 'cancelled')
            """,
            JobStatus(status).value,
            json.dumps(metadata or {}, default=str),
            job_id,
        )
        updated = result.endswith(" 1")
        if not updated:
            logger.warning(f"Status update to {JobStatus(status).value} skipped for job {job_id}")
        return updated

    async def create_artifact_record(
        self,
        job_id: str,
        user_id: str,
        file_path: str,
        metadata: Dict[str, Any],
    ) -> None:
        await self.execute(
            """
            INSERT INTO resumes (id, job_id, user_id, file_path, metadata, created_at)
            VALUES (gen_random_uuid(), $1, $2, $3, $4, NOW())
            """,
            job_id,
            user_id,
            file_path,
            json.dumps(metadata, default=str),
        )
