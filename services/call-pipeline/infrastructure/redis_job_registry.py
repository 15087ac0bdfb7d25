"""Redis-backed transcription job registry."""

import redis
import redis.asyncio as aioredis
from leadcapture_common.logging import setup_logging

from domain.models import TranscriptionJob
from exceptions import JobRegistryError
from infrastructure.interfaces import JobRegistry

logger = setup_logging()

KEY_PREFIX = "transcription-job:"


class RedisJobRegistry(JobRegistry):
    """Job registry using one Redis key per recording id."""

    def __init__(self, client: aioredis.Redis, ttl_seconds: int):
        self._client = client
        self._ttl_seconds = ttl_seconds

    async def claim(self, job: TranscriptionJob) -> bool:
        """
        Atomically registers a job with SET NX.

        Args:
            job: The new job.

        Returns:
            True if this call created the entry.

        Raises:
            JobRegistryError: If the Redis operation fails.
        """
        key = KEY_PREFIX + job.recording_id
        try:
            created = await self._client.set(
                key, job.model_dump_json(), nx=True, ex=self._ttl_seconds
            )
        except redis.RedisError as e:
            logger.exception("Redis claim failed", extra={"key": key})
            raise JobRegistryError(job.recording_id, "claim", cause=e) from e

        if created:
            logger.info("Transcription job claimed", extra={"recording_id": job.recording_id})
        return bool(created)

    async def update(self, job: TranscriptionJob) -> None:
        key = KEY_PREFIX + job.recording_id
        try:
            await self._client.set(key, job.model_dump_json(), ex=self._ttl_seconds)
        except redis.RedisError as e:
            logger.exception("Redis update failed", extra={"key": key})
            raise JobRegistryError(job.recording_id, "update", cause=e) from e

    async def get(self, recording_id: str) -> TranscriptionJob | None:
        key = KEY_PREFIX + recording_id
        try:
            value = await self._client.get(key)
        except redis.RedisError as e:
            logger.exception("Redis get failed", extra={"key": key})
            raise JobRegistryError(recording_id, "get", cause=e) from e
        return TranscriptionJob.model_validate_json(value) if value else None

    async def release(self, recording_id: str) -> None:
        key = KEY_PREFIX + recording_id
        try:
            await self._client.delete(key)
        except redis.RedisError as e:
            logger.exception("Redis release failed", extra={"key": key})
            raise JobRegistryError(recording_id, "release", cause=e) from e
        logger.info("Transcription job released", extra={"recording_id": recording_id})
