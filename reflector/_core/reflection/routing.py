"""
Routing of the watch-events to the reconciliation keys.

The watching & queueing themselves are not done here: they are the job of
the dispatching layer (an operator framework, an informer, a poller, etc).
These predicates only decide which source objects must be reconciled
when some object of a reflected kind is added, modified, or deleted.

The sources are reconciled on their own changes if they are under control
before or after the change: so that both putting an object under control,
and releasing it from control, trigger a pass.

The sources are also reconciled when any of their reflections is deleted
(e.g. by a human by mistake): so that the reflection is restored.
The reflections being purged by the reconciler are unlinked before deletion,
so they do not trigger the reconciliation of their sources.
"""
from typing import List, Optional

from reflector._cogs.structs import bodies, references
from reflector._core.reflection import annotations


def on_source_created(
        body: bodies.Body,
        *,
        markers: annotations.Markers = annotations.DEFAULT_MARKERS,
) -> bool:
    return annotations.is_under_control(bodies.get_annotations(body), markers=markers)


def on_source_updated(
        old: Optional[bodies.Body],
        new: bodies.Body,
        *,
        markers: annotations.Markers = annotations.DEFAULT_MARKERS,
) -> bool:
    was_controlled = old is not None and annotations.is_under_control(
        bodies.get_annotations(old), markers=markers)
    is_controlled = annotations.is_under_control(bodies.get_annotations(new), markers=markers)
    return was_controlled or is_controlled


def on_source_deleted(
        body: bodies.Body,
        *,
        markers: annotations.Markers = annotations.DEFAULT_MARKERS,
) -> bool:
    return annotations.is_under_control(bodies.get_annotations(body), markers=markers)


def source_of_reflection(
        body: bodies.Body,
        *,
        markers: annotations.Markers = annotations.DEFAULT_MARKERS,
) -> Optional[references.ObjectKey]:
    """
    Get the source's key of a reflection, or ``None`` if it is not a reflection.

    An object is a reflection if it has the provenance labels, but is not
    under control itself (i.e. is not a source object with odd labels).
    """
    labels = bodies.get_labels(body)
    if not annotations.has_provenance_labels(labels, markers=markers):
        return None
    if annotations.is_under_control(bodies.get_annotations(body), markers=markers):
        return None
    return references.ObjectKey(
        namespace=labels[markers.source_namespace],
        name=labels[markers.source_name],
    )


def route(
        event_type: bodies.RawEventType,
        body: bodies.Body,
        *,
        old: Optional[bodies.Body] = None,
        markers: annotations.Markers = annotations.DEFAULT_MARKERS,
) -> List[references.ObjectKey]:
    """
    Get the keys of the source objects to reconcile due to a watch-event.

    The event type ``None`` is used for the listings (e.g. on resyncs):
    every listed object is treated as if it is newly added.
    """
    keys: List[references.ObjectKey] = []
    own_key = references.ObjectKey(
        namespace=bodies.get_namespace(body) or '',
        name=bodies.get_name(body) or '',
    )

    if event_type is None or event_type == 'ADDED':
        if on_source_created(body, markers=markers):
            keys.append(own_key)
    elif event_type == 'MODIFIED':
        if on_source_updated(old, body, markers=markers):
            keys.append(own_key)
    elif event_type == 'DELETED':
        if on_source_deleted(body, markers=markers):
            keys.append(own_key)
        source_key = source_of_reflection(body, markers=markers)
        if source_key is not None and source_key not in keys:
            keys.append(source_key)
    else:
        raise ValueError(f"Unsupported event type: {event_type!r}")

    return keys
