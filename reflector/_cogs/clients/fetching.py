from typing import List, Mapping, Optional

from reflector._cogs.clients import api
from reflector._cogs.configs import configuration
from reflector._cogs.helpers import typedefs
from reflector._cogs.structs import bodies, references


async def read_obj(
        *,
        settings: configuration.OperatorSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Read a single object by its namespace & name.

    Raises :class:`APINotFoundError` if the object is absent.
    """
    body: bodies.RawBody = await api.call(
        'get', resource.get_url(namespace=namespace, name=name),
        settings=settings,
        logger=logger,
    )
    body.setdefault('apiVersion', resource.api_version)
    if resource.kind is not None:
        body.setdefault('kind', resource.kind)
    return body


async def list_objs(
        *,
        settings: configuration.OperatorSettings,
        resource: references.Resource,
        namespace: references.Namespace = None,
        labels: Optional[Mapping[str, str]] = None,
        logger: typedefs.Logger,
) -> List[bodies.RawBody]:
    """
    List the objects of specific resource type.

    The cluster-wide call is used if the namespace is not specified,
    i.e. the objects of all namespaces are returned.

    If labels are specified, only the objects with all of these labels
    having exactly these values are returned (the equality-based selector).
    """
    params = {'labelSelector': references.build_label_selector(labels)} if labels else None
    rsp = await api.call(
        'get', resource.get_url(namespace=namespace, params=params),
        settings=settings,
        logger=logger,
    )

    # The items of the lists have no kinds & versions, only the list itself has them.
    items: List[bodies.RawBody] = []
    for item in rsp.get('items', []):
        if 'kind' in rsp:
            item.setdefault('kind', rsp['kind'][:-4] if rsp['kind'][-4:] == 'List' else rsp['kind'])
        if 'apiVersion' in rsp:
            item.setdefault('apiVersion', rsp['apiVersion'])
        items.append(item)
    return items
