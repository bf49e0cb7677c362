"""Action Record store for EtherBlink.

Backends:
- Redis for persistence in production, in-memory fallback for development
- Remote store that talks to a running EtherBlink service over HTTP
"""

import asyncio
import json
import logging
import secrets
import string
from abc import ABC, abstractmethod
from urllib.parse import quote

import aiohttp
from redis import Redis, RedisError

from etherblink.core.errors import (
    ActionNotFoundError,
    LinkResolutionError,
    StoreWriteError,
)
from etherblink.core.models import ActionDescription, ActionRecord
from etherblink.observability.health import CheckResult, HealthCheck

logger = logging.getLogger(__name__)

SHORT_ID_ALPHABET = string.ascii_letters + string.digits
SHORT_ID_LENGTH = 8
REDIS_SOCKET_TIMEOUT = 2.0
MAX_SHORT_ID_ATTEMPTS = 5


def generate_short_id(length: int = SHORT_ID_LENGTH) -> str:
    """Generate a random alphanumeric short id."""
    return "".join(secrets.choice(SHORT_ID_ALPHABET) for _ in range(length))


class ActionStore(ABC):
    """Abstract store of created action links."""

    @abstractmethod
    async def create(self, action: ActionDescription) -> ActionRecord:
        """Persist an action and assign it a short id.

        Raises
        ------
        StoreWriteError
            If the write is rejected.
        """
        ...

    @abstractmethod
    async def get(self, short_id: str) -> ActionRecord:
        """Look up an action by short id.

        Raises
        ------
        ActionNotFoundError
            If no record exists or the store is unreachable.
        """
        ...

    async def close(self) -> None:
        """Release any held connections."""
        return None


class LocalActionStore(ActionStore):
    """Action store backed by Redis, or process memory without it.

    Parameters
    ----------
    redis_url : str | None
        Redis connection URL. If None, uses in-memory storage.
    """

    def __init__(self, redis_url: str | None = None):
        self._redis_url = redis_url
        self._redis: Redis | None = None

        # In-memory fallback storage
        self._memory_records: dict[str, ActionRecord] = {}

        if redis_url:
            self._init_redis(redis_url)

    def _init_redis(self, redis_url: str) -> None:
        """Initialize Redis connection."""
        try:
            self._redis = Redis.from_url(
                redis_url,
                decode_responses=True,
                socket_timeout=REDIS_SOCKET_TIMEOUT,
                socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
            )
            self._redis.ping()
            logger.info("Redis connected for action store", extra={"url": redis_url})
        except (RedisError, ValueError) as e:
            logger.warning(
                "Redis connection failed, using in-memory action store",
                extra={"error": str(e)},
            )
            self._redis = None

    @property
    def backend(self) -> str:
        return "redis" if self._redis else "memory"

    def _get_key(self, short_id: str) -> str:
        return f"etherblink:action:{short_id}"

    async def create(self, action: ActionDescription) -> ActionRecord:
        for _ in range(MAX_SHORT_ID_ATTEMPTS):
            record = ActionRecord.new(action, generate_short_id())
            if self._redis:
                stored = await asyncio.to_thread(self._create_redis, record)
            else:
                stored = self._create_memory(record)
            if stored:
                logger.info(
                    "Action stored",
                    extra={
                        "short_id": record.short_id,
                        "action_type": action.action_type,
                        "backend": self.backend,
                    },
                )
                return record
        raise StoreWriteError("Could not allocate a unique short id")

    def _create_redis(self, record: ActionRecord) -> bool:
        """Insert a record unless its short id is taken."""
        try:
            return bool(
                self._redis.set(
                    self._get_key(record.short_id),
                    json.dumps(record.to_row()),
                    nx=True,
                )
            )
        except RedisError as e:
            logger.error("Action store write failed", extra={"error": str(e)})
            raise StoreWriteError(f"Failed to store action: {e}") from e

    def _create_memory(self, record: ActionRecord) -> bool:
        if record.short_id in self._memory_records:
            return False
        self._memory_records[record.short_id] = record
        return True

    async def get(self, short_id: str) -> ActionRecord:
        if self._redis:
            return await asyncio.to_thread(self._get_redis, short_id)
        record = self._memory_records.get(short_id)
        if record is None:
            raise ActionNotFoundError(short_id)
        return record

    def _get_redis(self, short_id: str) -> ActionRecord:
        try:
            raw = self._redis.get(self._get_key(short_id))
        except RedisError as e:
            logger.error("Action store read failed", extra={"error": str(e)})
            raise ActionNotFoundError(short_id, "store unreachable") from e
        if raw is None:
            raise ActionNotFoundError(short_id)
        try:
            return ActionRecord.from_row(json.loads(raw))
        except (ValueError, KeyError, LinkResolutionError) as e:
            logger.error("Corrupt action record", extra={"short_id": short_id, "error": str(e)})
            raise ActionNotFoundError(short_id, "corrupt record") from e

    def ping(self) -> bool:
        """Check the backend is reachable."""
        if self._redis is None:
            return True
        try:
            return bool(self._redis.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        if self._redis is not None:
            self._redis.close()
            self._redis = None


class RemoteActionStore(ActionStore):
    """Action store reached through a running EtherBlink service's API.

    Parameters
    ----------
    base_url : str
        Service base URL; the API lives under ``{base_url}/api``.
    timeout : float
        Total request timeout in seconds.
    """

    def __init__(self, base_url: str, timeout: float = 10.0):
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def create(self, action: ActionDescription) -> ActionRecord:
        url = f"{self._base_url}/api/create-action"
        try:
            async with self._get_session().post(
                url, json=action.model_dump(exclude_none=True)
            ) as resp:
                data = await resp.json(content_type=None)
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise StoreWriteError(f"Action service unavailable: {e}") from e

        if status >= 300 or not isinstance(data, dict):
            error = data.get("error") if isinstance(data, dict) else None
            raise StoreWriteError(error or f"Action service returned HTTP {status}")

        try:
            return ActionRecord(
                id=str(data["id"]),
                short_id=data["short_id"],
                created_at=data["created_at"],
                action=action,
            )
        except (KeyError, ValueError) as e:
            raise StoreWriteError(f"Unexpected create-action response: {e}") from e

    async def get(self, short_id: str) -> ActionRecord:
        url = f"{self._base_url}/api/execute/{quote(short_id, safe='')}"
        try:
            async with self._get_session().get(url) as resp:
                if resp.status == 404:
                    raise ActionNotFoundError(short_id)
                if resp.status >= 300:
                    raise ActionNotFoundError(short_id, f"HTTP {resp.status}")
                row = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ActionNotFoundError(short_id, "store unreachable") from e
        except ValueError as e:
            raise ActionNotFoundError(short_id, "corrupt record") from e

        try:
            return ActionRecord.from_row(row)
        except (ValueError, KeyError, TypeError, LinkResolutionError) as e:
            raise ActionNotFoundError(short_id, "corrupt record") from e

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None


class StoreHealthCheck(HealthCheck):
    """Readiness check for the local action store backend."""

    name = "store"

    def __init__(self, store: LocalActionStore):
        self._store = store

    async def check(self) -> CheckResult:
        if await asyncio.to_thread(self._store.ping):
            return CheckResult.passed(self.name)
        return CheckResult.failed(self.name, "redis unreachable")
