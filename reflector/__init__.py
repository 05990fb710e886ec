"""
The main reflector module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the library's top-level interface,
# as it is seen by the users. So, we export the individual functions.

from reflector._cogs.clients.auth import (
    APIContext,
)
from reflector._cogs.clients.errors import (
    APIError,
    APIClientError,
    APIServerError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
    APIAlreadyExistsError,
    OwnershipError,
)
from reflector._cogs.configs.configuration import (
    OperatorSettings,
)
from reflector._cogs.structs.bodies import (
    Body,
    RawBody,
    build_owner_reference,
)
from reflector._cogs.structs.credentials import (
    LoginError,
    ConnectionInfo,
)
from reflector._cogs.structs.references import (
    ObjectKey,
    Resource,
)
from reflector._core.actions.execution import (
    PermanentError,
    TemporaryError,
    Action,
    Outcome,
)
from reflector._core.actions.loggers import (
    configure,
    LogFormat,
    ObjectLogger,
)
from reflector._core.intents.piggybacking import (
    login,
    login_with_kubeconfig,
    login_with_service_account,
)
from reflector._core.reactor.running import (
    reconcile_keys,
    resync,
    run,
    operate,
)
from reflector._core.reflection.annotations import (
    Markers,
    build_control_annotations,
)
from reflector._core.reflection.kinds import (
    Kind,
    CONFIGMAPS,
    SECRETS,
)
from reflector._core.reflection.reconciling import (
    Reconciler,
)
from reflector._core.reflection.routing import (
    on_source_created,
    on_source_updated,
    on_source_deleted,
    source_of_reflection,
    route,
)
from reflector._core.reflection.stores import (
    ObjectStore,
    APIObjectStore,
)
from reflector._kits.hierarchies import (
    append_owner_reference,
)

__all__ = [
    'APIContext',
    'APIError', 'APIClientError', 'APIServerError',
    'APIUnauthorizedError', 'APIForbiddenError', 'APINotFoundError',
    'APIConflictError', 'APIAlreadyExistsError', 'OwnershipError',
    'OperatorSettings',
    'Body', 'RawBody', 'build_owner_reference',
    'LoginError', 'ConnectionInfo',
    'ObjectKey', 'Resource',
    'PermanentError', 'TemporaryError', 'Action', 'Outcome',
    'configure', 'LogFormat', 'ObjectLogger',
    'login', 'login_with_kubeconfig', 'login_with_service_account',
    'reconcile_keys', 'resync', 'run', 'operate',
    'Markers', 'build_control_annotations',
    'Kind', 'CONFIGMAPS', 'SECRETS',
    'Reconciler',
    'on_source_created', 'on_source_updated', 'on_source_deleted',
    'source_of_reflection', 'route',
    'ObjectStore', 'APIObjectStore',
    'append_owner_reference',
]
