"""
The reconciliation pass: converge the reflections to their source's desire.

A pass is stateless: everything it needs is read from the store at its start,
and the desired state is a pure function of the source's current annotations.
Every step is idempotent, so a failed pass can be re-run from scratch
without any bookkeeping of what was done before the failure.

The pass goes as follows:

1. Read the source object. If it is gone, there is nothing to do: the cluster
   garbage-collects its reflections by their owner references.
2. Skip the object if it is not under control (no namespaces are declared).
3. Compute the desired namespaces: the declared ones, except for empty ones
   and the source's own namespace.
4. Build the reflection's template once, and link it to the source as an owner.
5. Create or update the reflection in every desired namespace.
6. Unlink & delete the reflections in the namespaces that are not desired.

Note that once the object is released from control (the annotation is removed),
its existing reflections are left as they are, since the pass stops at step 2.
They are removed only when the source is deleted, or re-reconciled when
the annotation is added back.
"""
import asyncio
import logging
from typing import List, Optional, Sequence

import aiohttp

from reflector._cogs.clients import errors
from reflector._cogs.configs import configuration
from reflector._cogs.structs import bodies, references
from reflector._core.actions import execution, loggers
from reflector._core.reflection import annotations, kinds, projections, stores

logger = logging.getLogger(__name__)


class Reconciler:
    """
    A reconciler of one kind of objects, e.g. of ConfigMaps or Secrets.

    The same instance can run the passes for different objects concurrently.
    The passes for the same object must be serialized by the caller.
    """

    def __init__(
            self,
            kind: kinds.Kind,
            store: stores.ObjectStore,
            *,
            settings: Optional[configuration.OperatorSettings] = None,
    ) -> None:
        super().__init__()
        self.kind = kind
        self.store = store
        self.settings = settings if settings is not None else configuration.OperatorSettings()

    @property
    def markers(self) -> annotations.Markers:
        return annotations.Markers.from_settings(self.settings)

    async def reconcile(self, key: references.ObjectKey) -> execution.Outcome:
        """
        Run one reconciliation pass for the source object, and classify its result.

        All errors of the pass become the outcomes: the fatal ones are final,
        the others are retried after a delay. A cancellation is not an error:
        ``asyncio.CancelledError`` is re-raised as is, and the callers must let it
        propagate, so that the cancelled pass is neither reported nor retried.
        """
        actions: List[execution.Action] = []
        timeout = self.settings.reconciling.pass_timeout
        try:
            return await asyncio.wait_for(self._attempt(key, actions), timeout=timeout)
        except asyncio.TimeoutError:
            exc = execution.TemporaryError(f"The pass has timed out after {timeout}s.",
                                           delay=self.settings.reconciling.retry_delay)
            logger.error(f"Reconciliation of {self.kind.kind} {key} has timed out; will retry.")
            return execution.Outcome(final=False, delay=exc.delay, exception=exc,
                                     actions=tuple(actions))

    async def _attempt(
            self,
            key: references.ObjectKey,
            actions: List[execution.Action],
    ) -> execution.Outcome:
        # The errors of the pass itself never leak, so the timeouts above are only the pass's.
        try:
            await self._reconcile(key, actions)
        except Exception as e:
            return self._classify(key, e, actions)
        else:
            return execution.Outcome(final=True, actions=tuple(actions))

    def _classify(
            self,
            key: references.ObjectKey,
            exc: Exception,
            actions: Sequence[execution.Action],
    ) -> execution.Outcome:
        what = f"{self.kind.kind} {key}"
        if isinstance(exc, errors.APIConflictError):
            logger.info(f"Reconciliation of {what} has hit a conflict; will retry: {exc!r}")
            delay: Optional[float] = self.settings.reconciling.conflict_delay
        elif isinstance(exc, execution.TemporaryError):
            logger.error(f"Reconciliation of {what} has failed temporarily; will retry: {exc!r}")
            delay = exc.delay
        elif isinstance(exc, (errors.APIServerError, errors.APIUnauthorizedError,
                              errors.APIForbiddenError, errors.APINotFoundError,
                              aiohttp.ClientConnectionError, asyncio.TimeoutError)):
            logger.error(f"Reconciliation of {what} has failed temporarily; will retry: {exc!r}")
            delay = self.settings.reconciling.retry_delay
        elif isinstance(exc, (execution.PermanentError, errors.OwnershipError,
                              errors.APIClientError)):
            logger.error(f"Reconciliation of {what} has failed permanently: {exc!r}")
            return execution.Outcome(final=True, exception=exc, actions=tuple(actions))
        else:
            logger.exception(f"Reconciliation of {what} has failed unexpectedly; will retry.")
            delay = self.settings.reconciling.retry_delay
        return execution.Outcome(final=False, delay=delay, exception=exc, actions=tuple(actions))

    async def _reconcile(
            self,
            key: references.ObjectKey,
            actions: List[execution.Action],
    ) -> None:
        markers = self.markers

        # Fetch the source. If it is gone, its reflections are garbage-collected by K8s.
        try:
            source = await self.store.read(self.kind, key.namespace, key.name)
        except errors.APINotFoundError:
            logger.debug(f"{self.kind.kind} {key} is not found; nothing to reconcile.")
            return

        source_annotations = bodies.get_annotations(source)
        if not annotations.is_under_control(source_annotations, markers=markers):
            logger.debug(f"{self.kind.kind} {key} is not under control; skipping.")
            return

        object_logger = loggers.ObjectLogger(body=source, settings=self.settings)
        object_logger.info(f"Reconciling {self.kind.kind}.")

        raw = source_annotations.get(markers.reflect_namespaces)
        namespaces = self.select_namespaces(key, annotations.parse_namespaces(raw) or [],
                                            logger=object_logger)

        template = projections.build_projection(source, kind=self.kind, markers=markers)
        self.store.set_owner(template, source)

        for namespace in namespaces:
            await self._converge(template, namespace, actions=actions, logger=object_logger)

        reflections = await self.store.list(self.kind, labels={
            markers.source_name: key.name,
            markers.source_namespace: key.namespace,
        })
        for body in reflections:
            namespace = bodies.get_namespace(body) or ''
            if namespace == key.namespace or namespace in namespaces:
                continue
            await self._purge(body, actions=actions, logger=object_logger)

    def select_namespaces(
            self,
            key: references.ObjectKey,
            declared: Sequence[str],
            *,
            logger: loggers.ObjectLogger,
    ) -> List[str]:
        """
        Filter the declared namespaces to those where the reflections should exist.

        The order is preserved. The duplicates are preserved too, since they only
        cause the redundant but harmless work (updates of the same reflection).
        """
        namespaces: List[str] = []
        for namespace in declared:
            if not namespace:
                continue
            if namespace == key.namespace:
                logger.warning(f"Skipping the source's own namespace {namespace!r}: "
                               f"it cannot be reflected into itself.")
                continue
            namespaces.append(namespace)
        return namespaces

    async def _converge(
            self,
            template: bodies.RawBody,
            namespace: str,
            *,
            actions: List[execution.Action],
            logger: loggers.ObjectLogger,
    ) -> None:
        body = projections.make_reflection(template, namespace)
        name = bodies.get_name(body) or ''

        try:
            await self.store.read(self.kind, namespace, name)
        except errors.APINotFoundError:
            logger.info(f"Creating a reflection in {namespace!r}.")
            try:
                await self.store.create(self.kind, body)
            except errors.APIAlreadyExistsError:
                logger.info(f"The reflection in {namespace!r} was created in parallel; "
                            f"updating it instead.")
            else:
                actions.append(execution.Action('create', namespace, name))
                return

        logger.info(f"Updating the reflection in {namespace!r}.")
        try:
            await self.store.update(self.kind, projections.make_reflection(template, namespace))
        except errors.APINotFoundError:
            raise execution.TemporaryError(f"The reflection in {namespace!r} has disappeared "
                                           f"while being updated.",
                                           delay=self.settings.reconciling.conflict_delay)
        actions.append(execution.Action('update', namespace, name))

    async def _purge(
            self,
            body: bodies.RawBody,
            *,
            actions: List[execution.Action],
            logger: loggers.ObjectLogger,
    ) -> None:
        namespace = bodies.get_namespace(body) or ''
        name = bodies.get_name(body) or ''
        logger.info(f"Deleting the dangling reflection in {namespace!r}.")

        # Unlink it first, so that its deletion does not trigger the source's reconciliation.
        try:
            unlinked = await self.store.update(
                self.kind, projections.strip_provenance(body, markers=self.markers))
            actions.append(execution.Action('update', namespace, name))
            await self.store.delete(self.kind, unlinked)
        except errors.APINotFoundError:
            logger.debug(f"The dangling reflection in {namespace!r} is already gone.")
        else:
            actions.append(execution.Action('delete', namespace, name))
