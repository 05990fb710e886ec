"""
The kinds of objects that can be reflected, and their payload specifics.

Both kinds are reflected with the same algorithm; they only differ in the API
endpoints and in which fields constitute the payload to be copied verbatim.
"""
import collections.abc
import copy
import dataclasses
from typing import Any, Dict, Mapping, MutableMapping, Tuple

from reflector._cogs.structs import bodies, references
from reflector._core.actions import execution


@dataclasses.dataclass(frozen=True)
class Kind:
    resource: references.Resource
    map_fields: Tuple[str, ...]
    str_fields: Tuple[str, ...] = ()

    @property
    def payload_fields(self) -> Tuple[str, ...]:
        return self.str_fields + self.map_fields

    @property
    def api_version(self) -> str:
        return self.resource.api_version

    @property
    def kind(self) -> str:
        return self.resource.kind or ''

    @property
    def plural(self) -> str:
        return self.resource.plural

    def extract_payload(self, body: bodies.Body) -> Dict[str, Any]:
        """
        Get a deep copy of the present payload fields of a body.

        Raises :class:`execution.PermanentError` if the fields are of an unsupported shape:
        retrying will not help until the object is fixed by its authors.
        """
        payload: Dict[str, Any] = {}
        for field in self.str_fields:
            if body.get(field) is not None:
                if not isinstance(body[field], str):
                    raise execution.PermanentError(f"{self.kind}'s {field} must be a string, "
                                                   f"got {type(body[field]).__name__}.")
                payload[field] = body[field]
        for field in self.map_fields:
            if body.get(field) is not None:
                if not isinstance(body[field], collections.abc.Mapping):
                    raise execution.PermanentError(f"{self.kind}'s {field} must be a mapping, "
                                                   f"got {type(body[field]).__name__}.")
                payload[field] = copy.deepcopy(dict(body[field]))
        return payload

    def apply_payload(self, body: MutableMapping[str, Any], payload: Mapping[str, Any]) -> None:
        for field in self.payload_fields:
            body.pop(field, None)
        for field in self.payload_fields:
            if field in payload:
                body[field] = copy.deepcopy(payload[field])


CONFIGMAPS = Kind(
    resource=references.Resource('', 'v1', 'configmaps', kind='ConfigMap', namespaced=True),
    map_fields=('data', 'binaryData'),
)

SECRETS = Kind(
    resource=references.Resource('', 'v1', 'secrets', kind='Secret', namespaced=True),
    str_fields=('type',),
    map_fields=('stringData', 'data'),
)

# As accepted in CLI, similar to kubectl's names.
KINDS: Mapping[str, Kind] = {
    'configmap': CONFIGMAPS,
    'configmaps': CONFIGMAPS,
    'cm': CONFIGMAPS,
    'secret': SECRETS,
    'secrets': SECRETS,
}
