"""
All the structures coming from/to the Kubernetes API.

For strict type-checking, they are detailed to the per-field level
(e.g. `TypedDict` instead of just ``Mapping[Any, Any]``) -- as used
by the reflector. The objects can have arbitrary fields at runtime,
which are not declared in the type definitions at type-checking time.

The Kubernetes-originated objects are plain dicts: as JSON-decoded from
the API responses. No 3rd-party client classes are supported.
"""
from typing import Any, List, Mapping, Optional, Union, cast

from typing_extensions import Literal, TypedDict

Labels = Mapping[str, str]
Annotations = Mapping[str, str]

# ``None`` is used for the listing, when the pseudo-watch-stream is simulated.
RawEventType = Literal[None, 'ADDED', 'MODIFIED', 'DELETED']


class OwnerReference(TypedDict, total=False):
    controller: bool
    blockOwnerDeletion: bool
    apiVersion: str
    kind: str
    name: str
    uid: str


class RawMeta(TypedDict, total=False):
    uid: str
    name: str
    namespace: str
    labels: Labels
    annotations: Annotations
    ownerReferences: List[OwnerReference]
    resourceVersion: str
    deletionTimestamp: str
    creationTimestamp: str


class RawBody(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawMeta
    type: str
    data: Mapping[str, str]
    stringData: Mapping[str, str]
    binaryData: Mapping[str, str]


Body = Union[RawBody, Mapping[str, Any]]


def get_name(body: Body) -> Optional[str]:
    return cast(Optional[str], body.get('metadata', {}).get('name'))


def get_namespace(body: Body) -> Optional[str]:
    return cast(Optional[str], body.get('metadata', {}).get('namespace'))


def get_labels(body: Body) -> Labels:
    return cast(Labels, body.get('metadata', {}).get('labels') or {})


def get_annotations(body: Body) -> Annotations:
    return cast(Annotations, body.get('metadata', {}).get('annotations') or {})


def build_owner_reference(
        body: Body,
) -> OwnerReference:
    """
    Construct an owner reference object for the parent-children relationships.

    The structure needed to link the children objects to the current object as a parent.
    See https://kubernetes.io/docs/concepts/workloads/controllers/garbage-collection/

    Keep in mind that some fields can be absent: e.g. ``uid`` for the objects
    that were never stored, or e.g. ``apiVersion`` for the partial bodies.
    """
    ref = dict(
        controller=True,
        blockOwnerDeletion=True,
        apiVersion=body.get('apiVersion'),
        kind=body.get('kind'),
        name=body.get('metadata', {}).get('name'),
        uid=body.get('metadata', {}).get('uid'),
    )
    return cast(OwnerReference, {key: val for key, val in ref.items() if val})
