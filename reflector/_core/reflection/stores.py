"""
Object stores are the reconciler's only way to see and change the cluster.

The reconciler does not know where the objects are stored. It only uses
a minimal generic interface: read one object, list the objects by labels,
create/update/delete one object, and link an object to its owner.

The errors are reported with the same exceptions as for K8s API
(see :mod:`reflector._cogs.clients.errors`), regardless of the store:

* :class:`APINotFoundError` if the object is absent (read/update/delete).
* :class:`APIAlreadyExistsError` if the object exists already (create).
* :class:`APIConflictError` if the object has changed since it was read (update).
* :class:`APIServerError` and connection errors for transient failures.
* :class:`APIClientError` for malformed requests.

The K8s-API-based store is implemented here. An in-memory store for tests
is available in :mod:`reflector.testing`.
"""
import abc
from typing import List, Mapping

from reflector._cogs.clients import creating, deleting, fetching, replacing
from reflector._cogs.configs import configuration
from reflector._cogs.helpers import typedefs
from reflector._cogs.structs import bodies, references
from reflector._core.reflection import kinds
from reflector._kits import hierarchies


class ObjectStore(metaclass=abc.ABCMeta):
    """
    Base class and an interface for all object stores.

    All operations are scoped by the kind of objects. The bodies returned
    are the stores' own copies, so the callers can modify them freely.
    """

    @abc.abstractmethod
    async def read(
            self,
            kind: kinds.Kind,
            namespace: str,
            name: str,
    ) -> bodies.RawBody:
        raise NotImplementedError

    @abc.abstractmethod
    async def list(
            self,
            kind: kinds.Kind,
            *,
            namespace: references.Namespace = None,
            labels: Mapping[str, str],
    ) -> List[bodies.RawBody]:
        raise NotImplementedError

    @abc.abstractmethod
    async def create(
            self,
            kind: kinds.Kind,
            body: bodies.RawBody,
    ) -> bodies.RawBody:
        raise NotImplementedError

    @abc.abstractmethod
    async def update(
            self,
            kind: kinds.Kind,
            body: bodies.RawBody,
    ) -> bodies.RawBody:
        raise NotImplementedError

    @abc.abstractmethod
    async def delete(
            self,
            kind: kinds.Kind,
            body: bodies.RawBody,
    ) -> None:
        raise NotImplementedError

    def set_owner(
            self,
            child: bodies.RawBody,
            owner: bodies.Body,
    ) -> None:
        """
        Make the child object garbage-collected when the owner is deleted.

        For K8s, this is only a field in the child's metadata, and the cluster's
        garbage collector does the rest. Other stores can override it.
        """
        hierarchies.append_owner_reference(child, owner=owner)


class APIObjectStore(ObjectStore):
    """
    The objects as stored in the Kubernetes cluster, accessed via K8s API.

    The API session is taken from the current context (see :mod:`auth`).
    """

    def __init__(
            self,
            *,
            settings: configuration.OperatorSettings,
            logger: typedefs.Logger,
    ) -> None:
        super().__init__()
        self.settings = settings
        self.logger = logger

    async def read(
            self,
            kind: kinds.Kind,
            namespace: str,
            name: str,
    ) -> bodies.RawBody:
        return await fetching.read_obj(
            resource=kind.resource,
            namespace=references.NamespaceName(namespace),
            name=name,
            settings=self.settings,
            logger=self.logger,
        )

    async def list(
            self,
            kind: kinds.Kind,
            *,
            namespace: references.Namespace = None,
            labels: Mapping[str, str],
    ) -> List[bodies.RawBody]:
        return await fetching.list_objs(
            resource=kind.resource,
            namespace=namespace,
            labels=labels,
            settings=self.settings,
            logger=self.logger,
        )

    async def create(
            self,
            kind: kinds.Kind,
            body: bodies.RawBody,
    ) -> bodies.RawBody:
        return await creating.create_obj(
            resource=kind.resource,
            body=body,
            settings=self.settings,
            logger=self.logger,
        )

    async def update(
            self,
            kind: kinds.Kind,
            body: bodies.RawBody,
    ) -> bodies.RawBody:
        return await replacing.replace_obj(
            resource=kind.resource,
            body=body,
            settings=self.settings,
            logger=self.logger,
        )

    async def delete(
            self,
            kind: kinds.Kind,
            body: bodies.RawBody,
    ) -> None:
        await deleting.delete_obj(
            resource=kind.resource,
            namespace=references.NamespaceName(bodies.get_namespace(body) or ''),
            name=bodies.get_name(body) or '',
            uid=body.get('metadata', {}).get('uid'),
            settings=self.settings,
            logger=self.logger,
        )
