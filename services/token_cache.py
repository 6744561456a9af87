import redis.asyncio as redis
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Field name under which the identity provider's access token is cached
ACCESS_TOKEN_KEY = "googleAccessToken"


class TokenCache:
    """Per-user credential cache, one Redis hash per signed-in user."""

    def __init__(self, redis_client: redis.Redis, ttl_seconds: int = 3600):
        self.redis_client = redis_client
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(user_id: str) -> str:
        return f"session:{user_id}"

    async def store_access_token(self, user_id: str, access_token: str):
        """Cache the identity provider access token for a user"""
        key = self._key(user_id)
        try:
            await self.redis_client.hset(key, ACCESS_TOKEN_KEY, access_token)
            await self.redis_client.expire(key, self.ttl_seconds)
            logger.info(f"Cached access token: user_id={user_id}, token={access_token[:8]}...")
        except redis.RedisError as e:
            logger.error(f"Token cache write failed: user_id={user_id}, error={e}")

    async def get_access_token(self, user_id: str) -> Optional[str]:
        """Cached access token, or None when absent or the cache is unreachable"""
        try:
            return await self.redis_client.hget(self._key(user_id), ACCESS_TOKEN_KEY)
        except redis.RedisError as e:
            logger.error(f"Token cache read failed: user_id={user_id}, error={e}")
            return None

    async def clear(self, user_id: str):
        try:
            await self.redis_client.delete(self._key(user_id))
            logger.info(f"Cleared cached credentials: user_id={user_id}")
        except redis.RedisError as e:
            logger.error(f"Token cache clear failed: user_id={user_id}, error={e}")
