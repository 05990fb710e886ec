from typing import cast

from reflector._cogs.clients import api
from reflector._cogs.configs import configuration
from reflector._cogs.helpers import typedefs
from reflector._cogs.structs import bodies, references


async def replace_obj(
        *,
        settings: configuration.OperatorSettings,
        resource: references.Resource,
        body: bodies.RawBody,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Replace a resource as a whole (an "update" in K8s API terms).

    If the body contains ``metadata.resourceVersion``, the update is optimistic:
    it fails with :class:`APIConflictError` if the object has changed since then.
    Otherwise, the object is overwritten unconditionally.

    Raises :class:`APINotFoundError` if the object is absent.
    """
    namespace = cast(references.Namespace, body.get('metadata', {}).get('namespace'))
    name = body.get('metadata', {}).get('name')
    replaced_body: bodies.RawBody = await api.call(
        'put', resource.get_url(namespace=namespace, name=name),
        payload=body,
        settings=settings,
        logger=logger,
    )
    return replaced_body
