"""
All the functions to properly build the object hierarchies.

Only the plain dicts are supported as the objects (as JSON-decoded from the API).
"""
from typing import Any, Iterable, MutableMapping, Union

from reflector._cogs.clients import errors
from reflector._cogs.structs import bodies

K8sObject = MutableMapping[Any, Any]
K8sObjects = Union[K8sObject, Iterable[K8sObject]]


def append_owner_reference(
        objs: K8sObjects,
        owner: bodies.Body,
) -> None:
    """
    Append a controller owner reference to the object(s), if it is not yet there.

    The objects are not yet stored, so the whole body can be modified.
    If an object is already controlled by another owner, :class:`OwnershipError`
    is raised: an object can have only one controller at a time.
    """
    owner_ref = bodies.build_owner_reference(owner)
    for obj in _walk(objs):
        refs = obj.setdefault('metadata', {}).setdefault('ownerReferences', [])
        for ref in refs:
            if ref.get('controller') and not _is_same_owner(ref, owner_ref):
                raise errors.OwnershipError(
                    f"Object {obj.get('metadata', {}).get('name')!r} is already controlled "
                    f"by {ref.get('kind')} {ref.get('name')!r}.")
        if not any(_is_same_owner(ref, owner_ref) for ref in refs):
            refs.append(owner_ref)


def _is_same_owner(ref: bodies.OwnerReference, owner_ref: bodies.OwnerReference) -> bool:
    # Unsaved owners have no uids; then, the kind & name are the best we can do.
    if ref.get('uid') and owner_ref.get('uid'):
        return ref.get('uid') == owner_ref.get('uid')
    return (ref.get('kind'), ref.get('name')) == (owner_ref.get('kind'), owner_ref.get('name'))


def _walk(objs: K8sObjects) -> Iterable[K8sObject]:
    if isinstance(objs, MutableMapping):
        yield objs
    elif isinstance(objs, Iterable) and not isinstance(objs, (str, bytes)):
        for obj in objs:
            yield from _walk(obj)
    else:
        raise TypeError(f"K8s object class is not supported: {type(objs)}")
