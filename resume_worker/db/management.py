"""Management database: projects and experiences."""
import logging
from typing import List

from resume_worker.db.connection import PostgresClient, drop_nulls
from resume_worker.models.entities import Experience, Project

logger = logging.getLogger(__name__)


class ManagementDatabase(PostgresClient):
    name = "management"

    async def get_projects(self, user_id: str, limit: int = 50) -> List[Project]:
        rows = await self.fetch(
            """
            SELECT id::text, user_id::text, name, description, status, slug, created_at, updated_at
            FROM projects
            WHERE user_id = $1
            ORDER BY updated_at DESC NULLS LAST, created_at DESC
            LIMIT $2
            """,
            user_id,
            limit,
        )
        logger.debug(f"Fetched {len(rows)} projects for user {user_id}")
        return [Project.model_validate(drop_nulls(row)) for row in rows]

    async def get_experiences(self, user_id: str, limit: int = 50) -> List[Experience]:
        rows = await self.fetch(
            """
            SELECT id::text, user_id::text, company, position, period_start, period_end,
                   description, location, technologies
            FROM experiences
            WHERE user_id = $1
            ORDER BY period_start DESC NULLS LAST
            LIMIT $2
            """,
            user_id,
            limit,
        )
        logger.debug(f"Fetched {len(rows)} experiences for user {user_id}")
        return [Experience.model_validate(drop_nulls(row)) for row in rows]
