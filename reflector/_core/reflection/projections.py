"""
Projections of the source objects: the bodies of their future reflections.

A projection is built once per pass and is then stamped into every target
namespace. The template is never mutated: every reflection gets its own copy.
"""
import copy
from typing import Dict, cast

from reflector._cogs.structs import bodies
from reflector._core.reflection import annotations, kinds


def build_projection(
        source: bodies.Body,
        *,
        kind: kinds.Kind,
        markers: annotations.Markers = annotations.DEFAULT_MARKERS,
) -> bodies.RawBody:
    """
    Build a template of a reflection, with the namespace left unset.

    The provenance labels are overlaid on top of the copied labels, so that
    they are always present and are never overridden by the source's labels.
    The control annotations are never copied, so that the reflections are not
    mistaken for the controlled sources themselves.
    """
    body: Dict[str, object] = {
        'apiVersion': kind.api_version,
        'kind': kind.kind,
        'metadata': {
            'name': bodies.get_name(source),
            'labels': copy_labels(source, markers=markers),
            'annotations': copy_annotations(source, markers=markers),
        },
    }
    kind.apply_payload(body, kind.extract_payload(source))
    return cast(bodies.RawBody, body)


def copy_labels(
        source: bodies.Body,
        *,
        markers: annotations.Markers = annotations.DEFAULT_MARKERS,
) -> Dict[str, str]:
    labels: Dict[str, str] = {}
    if bodies.get_annotations(source).get(markers.reflect_labels):
        labels.update(bodies.get_labels(source))
    labels.update(annotations.build_provenance_labels(source, markers=markers))
    return labels


def copy_annotations(
        source: bodies.Body,
        *,
        markers: annotations.Markers = annotations.DEFAULT_MARKERS,
) -> Dict[str, str]:
    source_annotations = bodies.get_annotations(source)
    if not source_annotations.get(markers.reflect_annotations):
        return {}
    return {
        key: val
        for key, val in source_annotations.items()
        if not annotations.is_control_annotation(key, markers=markers)
    }


def make_reflection(
        template: bodies.RawBody,
        namespace: str,
) -> bodies.RawBody:
    """
    Stamp a projection into a specific namespace as a new independent body.
    """
    body = copy.deepcopy(template)
    body.setdefault('metadata', {})['namespace'] = namespace
    return body


def strip_provenance(
        body: bodies.RawBody,
        *,
        markers: annotations.Markers = annotations.DEFAULT_MARKERS,
) -> bodies.RawBody:
    """
    Unlink a reflection from its source before its deletion.

    Otherwise, the deletion of a reflection is seen by the watchers as a deletion
    of a still needed reflection, which re-triggers the source's reconciliation.
    """
    body = copy.deepcopy(body)
    labels = dict(body.get('metadata', {}).get('labels') or {})
    labels.pop(markers.source_name, None)
    labels.pop(markers.source_namespace, None)
    body.setdefault('metadata', {})['labels'] = labels
    return body
