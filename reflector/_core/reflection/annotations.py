"""
The control annotations of the source objects and the provenance labels.

All the keys share the same prefix (see :class:`ReflectionSettings`):

* ``<prefix>reflect-namespaces`` -- a comma-separated list of namespaces;
  absent or empty means that the object is not under the reflector's control.
* ``<prefix>reflect-labels`` -- if not empty, the labels are copied.
* ``<prefix>reflect-annotations`` -- if not empty, the non-control annotations
  are copied.
* ``<prefix>source-name`` & ``<prefix>source-namespace`` -- the labels
  put on every reflection to point to its source object.
"""
import dataclasses
from typing import Dict, List, Optional, Sequence

from reflector._cogs.configs import configuration
from reflector._cogs.structs import bodies


@dataclasses.dataclass(frozen=True)
class Markers:
    """ The annotation & label keys, as derived from a common prefix. """

    prefix: str = configuration.DEFAULT_PREFIX

    @property
    def reflect_namespaces(self) -> str:
        return f'{self.prefix}reflect-namespaces'

    @property
    def reflect_labels(self) -> str:
        return f'{self.prefix}reflect-labels'

    @property
    def reflect_annotations(self) -> str:
        return f'{self.prefix}reflect-annotations'

    @property
    def source_name(self) -> str:
        return f'{self.prefix}source-name'

    @property
    def source_namespace(self) -> str:
        return f'{self.prefix}source-namespace'

    @classmethod
    def from_settings(cls, settings: configuration.OperatorSettings) -> "Markers":
        return cls(prefix=settings.reflection.prefix)


DEFAULT_MARKERS = Markers()


def parse_namespaces(raw: Optional[str]) -> Optional[List[str]]:
    """
    Split the annotation's value into a namespace list.

    ``None`` means that the object is not under control at all.
    Empty items are kept as is: e.g. for ``"ns1,,ns2,"``. They are filtered
    by the reconciler, where they are also reported.
    """
    if not raw:
        return None
    return [namespace.strip() for namespace in raw.split(',')]


def serialize_namespaces(namespaces: Sequence[str]) -> str:
    return ', '.join(namespaces)


def is_under_control(
        annotations: bodies.Annotations,
        *,
        markers: Markers = DEFAULT_MARKERS,
) -> bool:
    return bool(annotations.get(markers.reflect_namespaces))


def has_provenance_labels(
        labels: bodies.Labels,
        *,
        markers: Markers = DEFAULT_MARKERS,
) -> bool:
    return bool(labels.get(markers.source_name)) and bool(labels.get(markers.source_namespace))


def is_control_annotation(
        key: str,
        *,
        markers: Markers = DEFAULT_MARKERS,
) -> bool:
    return key.startswith(markers.prefix)


def build_provenance_labels(
        source: bodies.Body,
        *,
        markers: Markers = DEFAULT_MARKERS,
) -> Dict[str, str]:
    return {
        markers.source_name: bodies.get_name(source) or '',
        markers.source_namespace: bodies.get_namespace(source) or '',
    }


def build_control_annotations(
        namespaces: Sequence[str],
        *,
        labels: bool = False,
        annotations: bool = False,
        markers: Markers = DEFAULT_MARKERS,
) -> Dict[str, Optional[str]]:
    """
    Build the annotations to put the object under (or out of) control.

    The disabled or absent values are ``None``, so that they are removed
    when used in a JSON merge-patch. With no namespaces, all the control
    annotations are removed, i.e. the object is released from control.
    """
    if not namespaces:
        return {
            markers.reflect_namespaces: None,
            markers.reflect_labels: None,
            markers.reflect_annotations: None,
        }
    return {
        markers.reflect_namespaces: serialize_namespaces(namespaces),
        markers.reflect_labels: 'true' if labels else None,
        markers.reflect_annotations: 'true' if annotations else None,
    }
