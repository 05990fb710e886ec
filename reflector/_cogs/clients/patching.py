from typing import Any, Mapping

from reflector._cogs.clients import api
from reflector._cogs.configs import configuration
from reflector._cogs.helpers import typedefs
from reflector._cogs.structs import bodies, references


async def patch_obj(
        *,
        settings: configuration.OperatorSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        patch: Mapping[str, Any],
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Patch a resource of specific kind with a JSON merge-patch.

    The ``None`` values in the patch remove the corresponding keys.

    Raises :class:`APINotFoundError` if the object is absent.
    """
    patched_body: bodies.RawBody = await api.call(
        'patch', resource.get_url(namespace=namespace, name=name),
        headers={'Content-Type': 'application/merge-patch+json'},
        payload=dict(patch),
        settings=settings,
        logger=logger,
    )
    return patched_body
