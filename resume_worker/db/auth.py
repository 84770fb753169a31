"""Auth database: identity lookups for the resume header."""
import logging
from typing import Optional

from pydantic import BaseModel

from resume_worker.db.connection import PostgresClient, drop_nulls
from resume_worker.exceptions import DataAccessError

logger = logging.getLogger(__name__)


class AuthUser(BaseModel):
    id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class AuthDatabase(PostgresClient):
    name = "auth"

    async def get_user_by_id(self, user_id: str) -> Optional[AuthUser]:
        """Best-effort lookup; failures are logged and reported as no user."""
        try:
            row = await self.fetchrow(
                "SELECT id::text, first_name, last_name, email FROM users WHERE id = $1",
                user_id,
            )
        except DataAccessError as e:
            logger.warning(f"Failed to fetch user {user_id} from auth database: {e}")
            return None
        if row is None:
            return None
        return AuthUser.model_validate(drop_nulls(row))
