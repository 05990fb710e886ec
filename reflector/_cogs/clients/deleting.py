from typing import Any, Dict, Optional

from reflector._cogs.clients import api
from reflector._cogs.configs import configuration
from reflector._cogs.helpers import typedefs
from reflector._cogs.structs import references


async def delete_obj(
        *,
        settings: configuration.OperatorSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        uid: Optional[str] = None,
        logger: typedefs.Logger,
) -> None:
    """
    Delete a resource by its namespace & name.

    If the uid is known, it is used as a precondition, so that a newer object
    re-created with the same name in the meantime is not deleted by mistake.

    Raises :class:`APINotFoundError` if the object is absent.
    """
    options: Dict[str, Any] = {
        'apiVersion': 'v1',
        'kind': 'DeleteOptions',
        'propagationPolicy': 'Background',
    }
    if uid is not None:
        options['preconditions'] = {'uid': uid}
    await api.call(
        'delete', resource.get_url(namespace=namespace, name=name),
        payload=options,
        settings=settings,
        logger=logger,
    )
