"""serverStatus fetcher: one short-lived connection per call."""

from __future__ import annotations

import asyncio
import logging
import threading
from functools import partial

from pydantic import ValidationError
from pymongo import MongoClient, ReadPreference
from pymongo.errors import PyMongoError

from mongo_statsd.errors import StatusDecodeError, StatusFetchError
from mongo_statsd.status.models import ServerStatus

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 30.0


def fetch_status(url: str, connect_timeout: float = DEFAULT_CONNECT_TIMEOUT) -> ServerStatus:
    """Run ``serverStatus`` against *url* and decode the reply.

    A new client is created for every call and closed before returning,
    whether or not the command succeeded. *connect_timeout* also bounds
    socket reads, so a half-open connection cannot block forever. Raises
    StatusFetchError when the server cannot be reached or the command
    fails, and StatusDecodeError when the reply does not fit ServerStatus.
    """
    timeout_ms = int(connect_timeout * 1000)
    try:
        client: MongoClient = MongoClient(
            url,
            connectTimeoutMS=timeout_ms,
            serverSelectionTimeoutMS=timeout_ms,
            socketTimeoutMS=timeout_ms,
        )
    except PyMongoError as exc:
        raise StatusFetchError(f"Cannot create client for {url}: {exc}") from exc

    try:
        document = client.admin.command(
            "serverStatus", read_preference=ReadPreference.PRIMARY_PREFERRED,
        )
    except PyMongoError as exc:
        raise StatusFetchError(f"serverStatus failed: {exc}") from exc
    finally:
        client.close()

    try:
        status = ServerStatus.model_validate(document)
    except ValidationError as exc:
        raise StatusDecodeError(f"Unexpected serverStatus document: {exc}") from exc

    logger.debug("serverStatus from %s (version %s)", status.host, status.version)
    return status


def _settle(future: asyncio.Future, result: ServerStatus | None = None,
            error: Exception | None = None) -> None:
    if future.cancelled():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


class StatusFetcher:
    """Async front for fetch_status.

    Each call runs the driver on its own daemon thread. A fetch the caller
    stops waiting for is left to finish in the background and never holds
    up interpreter exit.
    """

    def __init__(self, url: str, connect_timeout: float = DEFAULT_CONNECT_TIMEOUT) -> None:
        self.url = url
        self.connect_timeout = connect_timeout

    async def fetch(self) -> ServerStatus:
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        thread = threading.Thread(
            target=self._fetch_into, args=(loop, future),
            name="status-fetch", daemon=True,
        )
        thread.start()
        return await future

    def _fetch_into(self, loop: asyncio.AbstractEventLoop, future: asyncio.Future) -> None:
        try:
            outcome = partial(_settle, future, fetch_status(self.url, self.connect_timeout))
        except Exception as exc:
            outcome = partial(_settle, future, error=exc)
        try:
            loop.call_soon_threadsafe(outcome)
        except RuntimeError:
            # Loop already closed: the fetch was abandoned at shutdown
            logger.debug("Discarding serverStatus that finished after shutdown")
