"""
Resume worker lifecycle.
Builds every client the job processor needs, owns their connections and
runs a periodic health check while consuming.
"""
import asyncio
import contextlib
import logging
import time
from typing import Any, Dict, List, Optional

from resume_worker.config import Settings, settings as default_settings
from resume_worker.db.auth import AuthDatabase
from resume_worker.db.connection import PostgresClient
from resume_worker.db.jobs import JobsDatabase
from resume_worker.db.management import ManagementDatabase
from resume_worker.db.posts import PostsDatabase
from resume_worker.exceptions import DataAccessError
from resume_worker.queue.consumer import MessageConsumer
from resume_worker.services.content.enricher import ContentEnricher
from resume_worker.services.job_processor import ResumeJobProcessor
from resume_worker.services.llm.base import ContentProvider
from resume_worker.services.llm.factory import ContentProviderFactory
from resume_worker.services.render_client import RenderServiceClient
from resume_worker.services.retry import RetryPolicy
from resume_worker.services.storage import ArtifactStorage

logger = logging.getLogger(__name__)


class ResumeWorker:
    """Process-level container for the consumer and its collaborators."""

    def __init__(self, settings: Settings = default_settings):
        self.settings = settings
        s = settings

        self.jobs_db = JobsDatabase(s.DATABASE_URL, max_size=s.DATABASE_POOL_SIZE, timeout=s.DATABASE_TIMEOUT)
        self.posts_db = PostsDatabase(
            s.DATABASE_URL_POSTS, max_size=s.DATABASE_POSTS_POOL_SIZE, timeout=s.DATABASE_TIMEOUT
        )
        self.management_db = ManagementDatabase(
            s.DATABASE_URL_MANAGEMENT, max_size=s.DATABASE_MANAGEMENT_POOL_SIZE, timeout=s.DATABASE_TIMEOUT
        )
        self.auth_db: Optional[AuthDatabase] = (
            AuthDatabase(s.DATABASE_URL_AUTH, max_size=s.DATABASE_AUTH_POOL_SIZE, timeout=s.DATABASE_TIMEOUT)
            if s.DATABASE_URL_AUTH
            else None
        )

        self.provider: ContentProvider = ContentProviderFactory.create(s)
        self.render_client = RenderServiceClient(
            base_url=s.RESUME_SERVICE_URL,
            api_key=s.RESUME_SERVICE_API_KEY,
            timeout=s.RESUME_SERVICE_TIMEOUT,
        )
        retry_policy = RetryPolicy.from_settings(s)

        self.processor = ResumeJobProcessor(
            jobs_db=self.jobs_db,
            posts_db=self.posts_db,
            management_db=self.management_db,
            enricher=ContentEnricher(
                self.provider,
                retry_policy=retry_policy,
                max_concurrency=s.AI_MAX_CONCURRENCY,
            ),
            render_client=self.render_client,
            storage=ArtifactStorage(s.STORAGE_PATH),
            auth_db=self.auth_db,
            retry_policy=retry_policy,
            settings=s,
        )
        self.consumer = MessageConsumer(s)

        self._health_task: Optional[asyncio.Task] = None
        self._started_at: Optional[float] = None

    @property
    def databases(self) -> List[PostgresClient]:
        clients: List[PostgresClient] = [self.jobs_db, self.posts_db, self.management_db]
        if self.auth_db is not None:
            clients.append(self.auth_db)
        return clients

    async def start(self) -> None:
        """Connect all collaborators and begin consuming."""
        logger.info(f"Resume worker starting in {self.settings.ENVIRONMENT} mode")
        logger.info(f"Content provider: {self.settings.LLM_PROVIDER}")

        await asyncio.gather(self.jobs_db.connect(), self.posts_db.connect(), self.management_db.connect())
        if self.auth_db is not None:
            try:
                await self.auth_db.connect()
            except DataAccessError as e:
                logger.warning(f"Auth database unavailable, identity lookups disabled: {e}")
                self.auth_db = None
                self.processor.auth_db = None

        try:
            await self.consumer.connect()
            await self.consumer.setup_topology()
            await self.consumer.start(self.processor.process_job)
        except Exception:
            logger.error("RabbitMQ startup failed, closing database pools")
            await self._close_databases()
            raise

        self._started_at = time.time()
        self._health_task = asyncio.create_task(self._health_loop())
        logger.info("Resume worker started")

    async def stop(self) -> None:
        """Stop consuming, then release every connection."""
        if self._health_task is not None and not self._health_task.done():
            self._health_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._health_task

        await self.consumer.stop()
        await self._close_databases()
        await self.provider.close()
        await self.render_client.close()
        logger.info("Resume worker shut down")

    async def _close_databases(self) -> None:
        for db in self.databases:
            await db.close()

    async def health_check(self) -> Dict[str, Any]:
        """
        Report component health.

        Only the broker and the databases decide ``healthy``; the AI and render
        services are reported under ``dependencies`` because enrichment
        degrades to raw content and render failures are recorded per job.

        Returns:
            Dict with overall ``healthy`` flag, per-component and per-dependency booleans
        """
        components: Dict[str, bool] = {"rabbitmq": self.consumer.is_connected()}
        pings = await asyncio.gather(*(db.ping() for db in self.databases))
        for db, ok in zip(self.databases, pings):
            components[f"database_{db.name}"] = ok

        ai_ok, render_ok = await asyncio.gather(self.provider.health(), self.render_client.health())

        healthy = all(components.values())
        health = {
            "healthy": healthy,
            "components": components,
            "dependencies": {"ai_service": ai_ok, "resume_service": render_ok},
            "uptime_seconds": int(time.time() - self._started_at) if self._started_at else 0,
        }
        return health

    async def _health_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.HEALTH_CHECK_INTERVAL)
            health = await self.health_check()
            if health["healthy"]:
                logger.debug(f"Health check passed: {health['components']}")
            else:
                logger.warning(f"Health check failed: {health['components']}")
            unreachable = [name for name, ok in health["dependencies"].items() if not ok]
            if unreachable:
                logger.warning(f"Dependencies unreachable: {', '.join(unreachable)}")
