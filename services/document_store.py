"""Document store over Redis.

Documents are JSON objects stored at ``{collection}:{doc_id}``; each collection
keeps a set of its ids for listing and simple field-equality queries. Every
write publishes a notification on ``changes:{collection}:{doc_id}`` so that
watchers can push the new state to their listeners.
"""
import asyncio
import inspect
import json
import logging
import uuid
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import redis.asyncio as redis

from utils.errors import PersistenceFailure

logger = logging.getLogger(__name__)

DocumentListener = Callable[[Optional[Dict[str, Any]]], Union[None, Awaitable[None]]]


@contextmanager
def _redis_errors(operation: str, key: str):
    """Log Redis failures and surface them as PersistenceFailure."""
    try:
        yield
    except redis.RedisError as e:
        logger.error(f"Document store {operation} failed: key={key}, error={e}")
        raise PersistenceFailure(f"Failed to {operation} document {key}") from e


async def _deliver(listener: DocumentListener, document: Optional[Dict[str, Any]]) -> None:
    result = listener(document)
    if inspect.isawaitable(result):
        await result


class Subscription:
    """Handle returned by DocumentStore.watch; cancel with unsubscribe()."""

    def __init__(self, key: str, pubsub, task: Optional[asyncio.Task] = None):
        self.key = key
        self._pubsub = pubsub
        self._task = task
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed

    async def unsubscribe(self) -> None:
        """Stop delivery. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True

        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        try:
            await self._pubsub.unsubscribe()
            await self._pubsub.aclose()
        except redis.RedisError as e:
            logger.warning(f"Error closing subscription: key={self.key}, error={e}")

        logger.info(f"Subscription closed: key={self.key}")


class DocumentStore:
    """Async JSON document store with per-document change notifications."""

    def __init__(self, redis_client: redis.Redis):
        self.redis_client = redis_client

    @staticmethod
    def _key(collection: str, doc_id: str) -> str:
        return f"{collection}:{doc_id}"

    @staticmethod
    def _ids_key(collection: str) -> str:
        return f"{collection}:_ids"

    @staticmethod
    def _channel(collection: str, doc_id: str) -> str:
        return f"changes:{collection}:{doc_id}"

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return the document, or None when it does not exist."""
        key = self._key(collection, doc_id)
        with _redis_errors("read", key):
            raw = await self.redis_client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def exists(self, collection: str, doc_id: str) -> bool:
        key = self._key(collection, doc_id)
        with _redis_errors("read", key):
            return bool(await self.redis_client.exists(key))

    async def set(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        merge: bool = False
    ) -> None:
        """
        Write a document.

        With merge=True the top-level fields of data are merged over the
        stored document. The merge is a plain read-modify-write with no
        transaction, so concurrent merges of the same document can lose
        fields (last writer wins).
        """
        key = self._key(collection, doc_id)

        document = dict(data)
        if merge:
            current = await self.get(collection, doc_id)
            if current:
                document = {**current, **data}

        with _redis_errors("write", key):
            async with self.redis_client.pipeline(transaction=True) as pipe:
                pipe.set(key, json.dumps(document))
                pipe.sadd(self._ids_key(collection), doc_id)
                pipe.publish(self._channel(collection, doc_id), "set")
                await pipe.execute()

        logger.debug(f"Document written: key={key}, merge={merge}")

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Store a new document under a generated id and return the id."""
        doc_id = uuid.uuid4().hex
        await self.set(collection, doc_id, {**data, "id": doc_id})
        return doc_id

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Merge fields into an existing document; the document must exist."""
        if not await self.exists(collection, doc_id):
            key = self._key(collection, doc_id)
            logger.warning(f"Update of missing document: key={key}")
            raise PersistenceFailure(f"Document {key} does not exist")
        await self.set(collection, doc_id, fields, merge=True)

    async def delete(self, collection: str, doc_id: str) -> None:
        key = self._key(collection, doc_id)
        with _redis_errors("delete", key):
            async with self.redis_client.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                pipe.srem(self._ids_key(collection), doc_id)
                pipe.publish(self._channel(collection, doc_id), "delete")
                await pipe.execute()
        logger.debug(f"Document deleted: key={key}")

    async def list(self, collection: str) -> List[Dict[str, Any]]:
        """All documents of a collection, in no particular order."""
        ids_key = self._ids_key(collection)
        with _redis_errors("list", ids_key):
            doc_ids = sorted(await self.redis_client.smembers(ids_key))
            if not doc_ids:
                return []
            raws = await self.redis_client.mget([self._key(collection, i) for i in doc_ids])
        return [json.loads(raw) for raw in raws if raw is not None]

    async def query(self, collection: str, **equals: Any) -> List[Dict[str, Any]]:
        """Documents whose fields equal every given keyword value."""
        documents = await self.list(collection)
        return [
            doc for doc in documents
            if all(doc.get(field) == value for field, value in equals.items())
        ]

    async def watch(
        self,
        collection: str,
        doc_id: str,
        listener: DocumentListener
    ) -> Subscription:
        """
        Deliver the document to listener now and again after every change.

        The listener receives the full current document (or None once it is
        deleted or when it does not exist yet). Notifications that arrive
        while a delivery is in progress collapse into one re-read; there is
        no buffering of intermediate states.
        """
        key = self._key(collection, doc_id)
        channel = self._channel(collection, doc_id)

        pubsub = self.redis_client.pubsub()
        with _redis_errors("subscribe", key):
            await pubsub.subscribe(channel)

        subscription = Subscription(key, pubsub)
        try:
            await _deliver(listener, await self.get(collection, doc_id))
        except Exception:
            await subscription.unsubscribe()
            raise

        subscription._task = asyncio.create_task(
            self._watch_loop(collection, doc_id, pubsub, listener)
        )
        logger.info(f"Subscription opened: key={key}")
        return subscription

    async def _watch_loop(self, collection: str, doc_id: str, pubsub, listener) -> None:
        key = self._key(collection, doc_id)
        while True:
            try:
                message = await pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=1.0
                )
                if message is None:
                    continue
                # Drain notifications that queued up; the re-read covers them all.
                while await pubsub.get_message(ignore_subscribe_messages=True, timeout=0.0):
                    pass
            except redis.RedisError as e:
                logger.error(f"Subscription read failed: key={key}, error={e}")
                await asyncio.sleep(1.0)
                continue

            try:
                document = await self.get(collection, doc_id)
                await _deliver(listener, document)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    f"Subscription listener failed: key={key}, error={e}",
                    exc_info=True
                )
