"""
Bounded runs of the reconciliation passes: for one-shot commands and resyncs.

There is no continuous watching or queueing here: the passes are run once for
the given keys (or for all the keys found by listing), and the outcomes are
returned to the caller, which decides what to do with the retryable ones.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Collection, Dict, Iterable, List, Optional, TypeVar

from reflector._cogs.clients import auth
from reflector._cogs.configs import configuration
from reflector._cogs.structs import bodies, references
from reflector._core.actions import execution
from reflector._core.intents import piggybacking
from reflector._core.reflection import annotations, kinds, reconciling, routing, stores

logger = logging.getLogger(__name__)

_T = TypeVar('_T')

Outcomes = Dict[references.ObjectKey, execution.Outcome]


async def reconcile_keys(
        kind: kinds.Kind,
        keys: Iterable[references.ObjectKey],
        *,
        store: stores.ObjectStore,
        settings: Optional[configuration.OperatorSettings] = None,
        concurrency: Optional[int] = None,
) -> Outcomes:
    """
    Run one reconciliation pass per distinct key, with the limited concurrency.

    The keys are deduplicated, so that the same object is never reconciled
    by two parallel passes. The outcomes are returned in the order of the keys.
    """
    settings = settings if settings is not None else configuration.OperatorSettings()
    concurrency = concurrency if concurrency is not None else settings.reconciling.concurrency
    reconciler = reconciling.Reconciler(kind, store, settings=settings)
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def reconcile_key(key: references.ObjectKey) -> execution.Outcome:
        async with semaphore:
            return await reconciler.reconcile(key)

    unique_keys = list(dict.fromkeys(keys))
    outcomes = await asyncio.gather(*[reconcile_key(key) for key in unique_keys])
    return dict(zip(unique_keys, outcomes))


async def resync(
        kind: kinds.Kind,
        *,
        store: stores.ObjectStore,
        settings: Optional[configuration.OperatorSettings] = None,
        namespaces: Collection[str] = (),
) -> Outcomes:
    """
    Reconcile all the controlled objects of a kind, as if they are newly seen.

    If the namespaces are specified, only the sources in these namespaces are
    reconciled (their reflections can be in any namespaces). Otherwise,
    the sources are looked up cluster-wide.
    """
    settings = settings if settings is not None else configuration.OperatorSettings()
    markers = annotations.Markers.from_settings(settings)

    listed: List[bodies.RawBody] = []
    if namespaces:
        for namespace in namespaces:
            listed.extend(await store.list(kind, namespace=references.NamespaceName(namespace),
                                           labels={}))
    else:
        listed.extend(await store.list(kind, labels={}))

    keys: List[references.ObjectKey] = []
    for body in listed:
        keys.extend(routing.route(None, body, markers=markers))

    logger.info(f"Resyncing {len(keys)} {kind.plural} out of {len(listed)} found.")
    return await reconcile_keys(kind, keys, store=store, settings=settings)


def run(
        command: Callable[[stores.ObjectStore], Awaitable[_T]],
        *,
        settings: Optional[configuration.OperatorSettings] = None,
) -> _T:
    """
    Run a command against the real cluster synchronously.

    This function should be used in the normal sync mode, e.g. from the CLI.
    """
    return asyncio.run(operate(command, settings=settings))


async def operate(
        command: Callable[[stores.ObjectStore], Awaitable[_T]],
        *,
        settings: Optional[configuration.OperatorSettings] = None,
) -> _T:
    """
    Run a command against the real cluster asynchronously.

    The command gets an object store backed by the K8s API. The API session
    is opened once for the whole command, and is closed when it is finished.
    """
    settings = settings if settings is not None else configuration.OperatorSettings()
    info = piggybacking.login(logger=logger)
    async with auth.APIContext(info) as context:
        token = auth.context_var.set(context)
        try:
            store = stores.APIObjectStore(settings=settings, logger=logger)
            return await command(store)
        finally:
            auth.context_var.reset(token)
