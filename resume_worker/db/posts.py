"""Posts database: technical writings, posts and system designs."""
import logging
from typing import List

from resume_worker.db.connection import PostgresClient, drop_nulls
from resume_worker.models.entities import Post, SystemDesign, TechnicalWriting

logger = logging.getLogger(__name__)


class PostsDatabase(PostgresClient):
    name = "posts"

    async def get_technical_writings(self, user_id: str, limit: int = 50) -> List[TechnicalWriting]:
        rows = await self.fetch(
            """
            SELECT id::text, user_id::text, title, description, url, excerpt,
                   published_at, topics, technologies, type, platform
            FROM technical_writings
            WHERE user_id = $1
            ORDER BY published_at DESC NULLS LAST, created_at DESC
            LIMIT $2
            """,
            user_id,
            limit,
        )
        logger.debug(f"Fetched {len(rows)} technical writings for user {user_id}")
        return [TechnicalWriting.model_validate(drop_nulls(row)) for row in rows]

    async def get_posts(self, user_id: str, limit: int = 50) -> List[Post]:
        rows = await self.fetch(
            """
            SELECT id::text, user_id::text, title, excerpt, url, tags, created_at
            FROM posts
            WHERE user_id = $1
            ORDER BY created_at DESC
            LIMIT $2
            """,
            user_id,
            limit,
        )
        logger.debug(f"Fetched {len(rows)} posts for user {user_id}")
        return [Post.model_validate(drop_nulls(row)) for row in rows]

    async def get_system_designs(self, user_id: str, limit: int = 50) -> List[SystemDesign]:
        rows = await self.fetch(
            """
            SELECT id::text, user_id::text, title, description, components, data_flow, diagram, created_at
            FROM system_designs
            WHERE user_id = $1
            ORDER BY created_at DESC
            LIMIT $2
            """,
            user_id,
            limit,
        )
        logger.debug(f"Fetched {len(rows)} system designs for user {user_id}")
        return [SystemDesign.model_validate(drop_nulls(row)) for row in rows]
