"""
The raw HTTP calls to the K8s API.

The connectivity errors, the timeouts, and the 5xx responses are retried
within a single call according to ``settings.networking.error_backoffs``.
All other errors (4xx) are escalated to the caller on the first attempt.
"""
import asyncio
import collections.abc
import itertools
from typing import Any, Iterable, Mapping, Optional, Tuple

import aiohttp

from reflector._cogs.clients import auth, errors
from reflector._cogs.configs import configuration
from reflector._cogs.helpers import typedefs

RETRYABLE_ERRORS = (aiohttp.ClientConnectionError, asyncio.TimeoutError, errors.APIServerError)


def _get_backoffs(
        settings: configuration.OperatorSettings,
) -> Tuple[Iterable[float], Optional[int]]:
    backoffs = settings.networking.error_backoffs
    if not isinstance(backoffs, collections.abc.Iterable):
        backoffs = [backoffs]
    attempts = len(backoffs) + 1 if isinstance(backoffs, collections.abc.Sized) else None
    return backoffs, attempts


@auth.authenticated
async def request(
        method: str,
        url: str,
        *,
        settings: configuration.OperatorSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        context: Optional[auth.APIContext] = None,  # injected by the decorator
        logger: typedefs.Logger,
) -> aiohttp.ClientResponse:
    """
    Send a request and check its status, but leave the response unparsed.

    The relative URLs are resolved against the API server of the context.
    """
    if context is None:  # for type-checking
        raise RuntimeError("The API context is not injected by the decorator.")

    if '://' not in url:
        url = f"{context.server.rstrip('/')}/{url.lstrip('/')}"
    timeout = aiohttp.ClientTimeout(
        total=settings.networking.request_timeout,
        sock_connect=settings.networking.connect_timeout,
    )
    what = f"{method.upper()} {url}"

    backoffs, attempts = _get_backoffs(settings)
    delay: Optional[float]
    for attempt, delay in enumerate(itertools.chain(backoffs, [None]), start=1):
        label = f"#{attempt}/{attempts}" if attempts is not None else f"#{attempt}"
        if attempt > 1:
            logger.debug(f"Sending the request again, attempt {label}: {what}")
        try:
            response = await context.session.request(
                method=method, url=url, json=payload, headers=headers, timeout=timeout)
            await errors.check_response(response)
        except RETRYABLE_ERRORS as e:
            if delay is None:
                logger.error(f"Request attempt {label} failed; escalating: {what} -> {e!r}")
                raise
            logger.error(f"Request attempt {label} failed; will retry in {delay}s: {what} -> {e!r}")
            await asyncio.sleep(delay)
        else:
            if attempt > 1:
                logger.debug(f"Request attempt {label} succeeded: {what}")
            return response

    raise RuntimeError("The request has neither succeeded nor failed.")  # for type-checking


async def call(
        method: str,
        url: str,
        *,
        settings: configuration.OperatorSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        logger: typedefs.Logger,
) -> Any:
    """ Send a request and parse its response as JSON. """
    response = await request(method, url, settings=settings, payload=payload,
                             headers=headers, logger=logger)
    async with response:
        return await response.json()
