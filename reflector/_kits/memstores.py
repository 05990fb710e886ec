import copy
import dataclasses
import itertools
import uuid
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple, cast

from typing_extensions import Literal

from reflector._cogs.clients import errors
from reflector._cogs.structs import bodies, references
from reflector._core.actions import execution
from reflector._core.reflection import kinds, stores

StoreVerb = Literal['read', 'list', 'create', 'update', 'delete']
StoreKey = Tuple[str, str, str]  # plural, namespace, name


@dataclasses.dataclass
class Injection:
    """ A fault to be raised instead of executing a store call. """
    verb: StoreVerb
    exc: BaseException
    namespace: Optional[str] = None
    name: Optional[str] = None
    times: Optional[int] = 1  # None for infinite

    def matches(self, verb: StoreVerb, namespace: Optional[str], name: Optional[str]) -> bool:
        return (self.verb == verb and
                (self.namespace is None or self.namespace == namespace) and
                (self.name is None or self.name == name))


class MemoryStore(stores.ObjectStore):
    """
    An object store that keeps the objects in memory, as a fake cluster.

    It simulates the parts of K8s API semantics used by the reconciler:

    * The stored objects get their ``uid`` and ``resourceVersion`` assigned.
    * Updates with an outdated ``resourceVersion`` fail with a conflict;
      updates without a ``resourceVersion`` are unconditional.
    * Deletions are cascaded to the objects with owner references
      to the deleted objects (as the cluster's garbage collector does).
    * All the bodies are deep-copied in & out, so that the callers
      can never modify the stored objects accidentally.

    All the mutating calls are recorded in :attr:`history`. The errors can be
    injected for specific calls with :meth:`inject`.

    Usage::

        store = MemoryStore()
        store.put(CONFIGMAPS, {'metadata': {'namespace': 'ns-a', 'name': 'cfg'}, ...})
        outcome = await Reconciler(CONFIGMAPS, store).reconcile(ObjectKey('ns-a', 'cfg'))
        assert store.get(CONFIGMAPS, 'ns-b', 'cfg') is not None
    """

    def __init__(self) -> None:
        super().__init__()
        self.objects: Dict[StoreKey, bodies.RawBody] = {}
        self.history: List[execution.Action] = []
        self.injections: List[Injection] = []
        self._versions: Iterator[int] = itertools.count(1)

    def put(self, kind: kinds.Kind, body: bodies.Body) -> bodies.RawBody:
        """
        Store an object directly, bypassing the checks, the faults, and the history.
        """
        stored = self._stamp(kind, copy.deepcopy(dict(body)))
        self.objects[self._key(kind, stored)] = stored
        return copy.deepcopy(stored)

    def get(self, kind: kinds.Kind, namespace: str, name: str) -> Optional[bodies.RawBody]:
        """
        Peek into the stored object directly, or get ``None`` if it is absent.
        """
        stored = self.objects.get((kind.plural, namespace, name))
        return copy.deepcopy(stored) if stored is not None else None

    def namespaces_of(self, kind: kinds.Kind, name: str) -> Set[str]:
        """ All the namespaces where the objects with this name exist. """
        return {ns for plural, ns, n in self.objects if plural == kind.plural and n == name}

    def inject(
            self,
            verb: StoreVerb,
            exc: BaseException,
            *,
            namespace: Optional[str] = None,
            name: Optional[str] = None,
            times: Optional[int] = 1,
    ) -> None:
        """
        Raise an error on the next call(s) of the verb, optionally for a specific object.
        """
        self.injections.append(Injection(verb=verb, exc=exc, namespace=namespace,
                                         name=name, times=times))

    async def read(
            self,
            kind: kinds.Kind,
            namespace: str,
            name: str,
    ) -> bodies.RawBody:
        self._check_injections('read', namespace, name)
        stored = self.objects.get((kind.plural, namespace, name))
        if stored is None:
            raise self._not_found(kind, namespace, name)
        return copy.deepcopy(stored)

    async def list(
            self,
            kind: kinds.Kind,
            *,
            namespace: references.Namespace = None,
            labels: Mapping[str, str],
    ) -> List[bodies.RawBody]:
        self._check_injections('list', namespace, None)
        return [
            copy.deepcopy(stored)
            for (plural, ns, _), stored in sorted(self.objects.items())
            if plural == kind.plural
            if namespace is None or ns == namespace
            if all(bodies.get_labels(stored).get(key) == val for key, val in labels.items())
        ]

    async def create(
            self,
            kind: kinds.Kind,
            body: bodies.RawBody,
    ) -> bodies.RawBody:
        namespace, name = bodies.get_namespace(body), bodies.get_name(body)
        self._check_injections('create', namespace, name)
        if not namespace or not name:
            raise errors.APIClientError(errors.make_status(
                422, 'Invalid', f"{kind.kind} must have a namespace and a name."), status=422)

        key = self._key(kind, body)
        if key in self.objects:
            raise errors.APIAlreadyExistsError(errors.make_status(
                409, 'AlreadyExists', f'{kind.plural} "{name}" already exists'), status=409)

        stored = self._stamp(kind, copy.deepcopy(dict(body)))
        self.objects[key] = stored
        self.history.append(execution.Action('create', namespace, name))
        return copy.deepcopy(stored)

    async def update(
            self,
            kind: kinds.Kind,
            body: bodies.RawBody,
    ) -> bodies.RawBody:
        namespace, name = bodies.get_namespace(body), bodies.get_name(body)
        self._check_injections('update', namespace, name)
        key = self._key(kind, body)
        existing = self.objects.get(key)
        if existing is None:
            raise self._not_found(kind, namespace, name)

        version = body.get('metadata', {}).get('resourceVersion')
        if version and version != existing['metadata'].get('resourceVersion'):
            raise errors.APIConflictError(errors.make_status(
                409, 'Conflict', f'Operation cannot be fulfilled on {kind.plural} "{name}": '
                                 f'the object has been modified.'), status=409)

        updated = copy.deepcopy(dict(body))
        updated.setdefault('metadata', {})['uid'] = existing['metadata']['uid']
        stored = self._stamp(kind, updated)
        self.objects[key] = stored
        self.history.append(execution.Action('update', namespace or '', name or ''))
        return copy.deepcopy(stored)

    async def delete(
            self,
            kind: kinds.Kind,
            body: bodies.RawBody,
    ) -> None:
        namespace, name = bodies.get_namespace(body), bodies.get_name(body)
        self._check_injections('delete', namespace, name)
        key = self._key(kind, body)
        existing = self.objects.get(key)
        if existing is None:
            raise self._not_found(kind, namespace, name)

        uid = body.get('metadata', {}).get('uid')
        if uid and uid != existing['metadata']['uid']:
            raise errors.APIConflictError(errors.make_status(
                409, 'Conflict', f'Precondition failed: UID in precondition: {uid}, '
                                 f'UID in object meta: {existing["metadata"]["uid"]}'), status=409)

        del self.objects[key]
        self.history.append(execution.Action('delete', namespace or '', name or ''))
        self._collect_garbage([existing['metadata']['uid']])

    def _collect_garbage(self, uids: Iterable[str]) -> None:
        pending = list(uids)
        while pending:
            owner_uid = pending.pop()
            for key, stored in list(self.objects.items()):
                refs = stored.get('metadata', {}).get('ownerReferences', [])
                if any(ref.get('uid') == owner_uid for ref in refs):
                    del self.objects[key]
                    pending.append(stored['metadata']['uid'])

    def _check_injections(
            self,
            verb: StoreVerb,
            namespace: Optional[str],
            name: Optional[str],
    ) -> None:
        for injection in self.injections:
            if injection.matches(verb, namespace, name):
                if injection.times is not None:
                    injection.times -= 1
                    if injection.times <= 0:
                        self.injections.remove(injection)
                raise injection.exc

    def _stamp(self, kind: kinds.Kind, body: Dict[str, object]) -> bodies.RawBody:
        body.setdefault('apiVersion', kind.api_version)
        body.setdefault('kind', kind.kind)
        meta = body.setdefault('metadata', {})
        assert isinstance(meta, dict)
        meta.setdefault('uid', str(uuid.uuid4()))
        meta['resourceVersion'] = str(next(self._versions))
        return cast(bodies.RawBody, body)

    @staticmethod
    def _key(kind: kinds.Kind, body: bodies.Body) -> StoreKey:
        return (kind.plural, bodies.get_namespace(body) or '', bodies.get_name(body) or '')

    @staticmethod
    def _not_found(
            kind: kinds.Kind,
            namespace: Optional[str],
            name: Optional[str],
    ) -> errors.APIError:
        return errors.APINotFoundError(errors.make_status(
            404, 'NotFound', f'{kind.plural} "{name}" not found in {namespace!r}'), status=404)
