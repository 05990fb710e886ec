import pytest

from reflector._core.reflection.reconciling import Reconciler

NS = 'configreflector.github.io/reflect-namespaces'
LABELS = 'configreflector.github.io/reflect-labels'
ANNOTATIONS = 'configreflector.github.io/reflect-annotations'
SOURCE_NAME = 'configreflector.github.io/source-name'
SOURCE_NAMESPACE = 'configreflector.github.io/source-namespace'


@pytest.fixture()
def make_source(store, kind):
    """ Put a source object into the store, controlled or not. """
    def maker(namespaces=None, *, name='cfg', namespace='ns-a', labels=None, annotations=None):
        all_annotations = dict(annotations or {})
        if namespaces is not None:
            all_annotations[NS] = namespaces
        return store.put(kind, {
            'metadata': {
                'namespace': namespace,
                'name': name,
                'labels': dict(labels or {}),
                'annotations': all_annotations,
            },
            'data': {'key': 'value'},
        })
    return maker


@pytest.fixture()
def make_reflection(store, kind):
    """ Put a pre-existing reflection of a source into the store. """
    def maker(namespace, *, name='cfg', source_namespace='ns-a', data=None):
        return store.put(kind, {
            'metadata': {
                'namespace': namespace,
                'name': name,
                'labels': {SOURCE_NAME: name, SOURCE_NAMESPACE: source_namespace},
            },
            'data': dict(data or {'key': 'outdated'}),
        })
    return maker


@pytest.fixture()
def reconciler(kind, store, settings):
    return Reconciler(kind, store, settings=settings)
