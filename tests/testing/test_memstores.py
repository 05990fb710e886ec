import pytest

from reflector._cogs.clients.errors import APIAlreadyExistsError, APIClientError, \
                                           APIConflictError, APINotFoundError, APIServerError
from reflector._core.actions.execution import Action
from reflector._core.reflection.kinds import CONFIGMAPS, SECRETS
from reflector.testing import MemoryStore


def body(namespace='ns1', name='name1', **fields):
    return dict({'metadata': {'namespace': namespace, 'name': name}}, **fields)


async def test_creation_assigns_identity(store):
    created = await store.create(CONFIGMAPS, body(data={'a': 'b'}))
    assert created['apiVersion'] == 'v1'
    assert created['kind'] == 'ConfigMap'
    assert created['metadata']['uid']
    assert created['metadata']['resourceVersion']
    assert created['data'] == {'a': 'b'}
    assert store.history == [Action('create', 'ns1', 'name1')]


async def test_creation_of_existing_object(store):
    await store.create(CONFIGMAPS, body())
    with pytest.raises(APIAlreadyExistsError) as err:
        await store.create(CONFIGMAPS, body())
    assert err.value.status == 409
    assert err.value.reason == 'AlreadyExists'
    assert isinstance(err.value, APIConflictError)


async def test_creation_without_namespace(store):
    with pytest.raises(APIClientError):
        await store.create(CONFIGMAPS, {'metadata': {'name': 'name1'}})


async def test_kinds_are_isolated(store):
    await store.create(CONFIGMAPS, body())
    await store.create(SECRETS, body())
    assert len(await store.list(CONFIGMAPS, labels={})) == 1
    assert len(await store.list(SECRETS, labels={})) == 1


async def test_reading(store):
    created = await store.create(CONFIGMAPS, body(data={'a': 'b'}))
    read = await store.read(CONFIGMAPS, 'ns1', 'name1')
    assert read == created


async def test_reading_of_absent_object(store):
    with pytest.raises(APINotFoundError) as err:
        await store.read(CONFIGMAPS, 'ns1', 'name1')
    assert err.value.status == 404


async def test_bodies_are_copied_in_and_out(store):
    original = body(data={'a': 'b'})
    created = await store.create(CONFIGMAPS, original)
    original['data']['a'] = 'changed-in'
    created['data']['a'] = 'changed-out'
    read = await store.read(CONFIGMAPS, 'ns1', 'name1')
    assert read['data'] == {'a': 'b'}


async def test_listing_by_labels(store):
    store.put(CONFIGMAPS, {'metadata': {'namespace': 'ns1', 'name': 'a', 'labels': {'x': '1'}}})
    store.put(CONFIGMAPS, {'metadata': {'namespace': 'ns2', 'name': 'b', 'labels': {'x': '1',
                                                                                     'y': '2'}}})
    store.put(CONFIGMAPS, {'metadata': {'namespace': 'ns3', 'name': 'c', 'labels': {'x': '2'}}})

    listed = await store.list(CONFIGMAPS, labels={'x': '1'})
    assert [b['metadata']['name'] for b in listed] == ['a', 'b']

    listed = await store.list(CONFIGMAPS, labels={'x': '1', 'y': '2'})
    assert [b['metadata']['name'] for b in listed] == ['b']

    listed = await store.list(CONFIGMAPS, labels={})
    assert [b['metadata']['name'] for b in listed] == ['a', 'b', 'c']


async def test_listing_by_namespace(store):
    store.put(CONFIGMAPS, body(namespace='ns1', name='a'))
    store.put(CONFIGMAPS, body(namespace='ns2', name='b'))

    listed = await store.list(CONFIGMAPS, namespace='ns2', labels={})
    assert [b['metadata']['name'] for b in listed] == ['b']


async def test_unconditional_update(store):
    created = await store.create(CONFIGMAPS, body(data={'a': 'b'}))
    updated = await store.update(CONFIGMAPS, body(data={'c': 'd'}))
    assert updated['data'] == {'c': 'd'}
    assert updated['metadata']['uid'] == created['metadata']['uid']
    assert updated['metadata']['resourceVersion'] != created['metadata']['resourceVersion']


async def test_optimistic_update(store):
    created = await store.create(CONFIGMAPS, body(data={'a': 'b'}))
    created['data'] = {'c': 'd'}
    updated = await store.update(CONFIGMAPS, created)
    assert updated['data'] == {'c': 'd'}


async def test_optimistic_update_of_outdated_version(store):
    created = await store.create(CONFIGMAPS, body(data={'a': 'b'}))
    await store.update(CONFIGMAPS, body(data={'x': 'y'}))
    with pytest.raises(APIConflictError) as err:
        await store.update(CONFIGMAPS, created)
    assert err.value.reason == 'Conflict'
    assert (await store.read(CONFIGMAPS, 'ns1', 'name1'))['data'] == {'x': 'y'}


async def test_update_of_absent_object(store):
    with pytest.raises(APINotFoundError):
        await store.update(CONFIGMAPS, body())


async def test_deletion(store):
    created = await store.create(CONFIGMAPS, body())
    await store.delete(CONFIGMAPS, created)
    assert store.get(CONFIGMAPS, 'ns1', 'name1') is None
    assert store.history[-1] == Action('delete', 'ns1', 'name1')


async def test_deletion_of_absent_object(store):
    with pytest.raises(APINotFoundError):
        await store.delete(CONFIGMAPS, body())


async def test_deletion_with_outdated_uid(store):
    await store.create(CONFIGMAPS, body())
    with pytest.raises(APIConflictError):
        await store.delete(CONFIGMAPS, {'metadata': {'namespace': 'ns1', 'name': 'name1',
                                                     'uid': 'other'}})
    assert store.get(CONFIGMAPS, 'ns1', 'name1') is not None


async def test_cascading_deletion(store):
    owner = await store.create(CONFIGMAPS, body(name='owner'))
    child = body(name='child')
    store.set_owner(child, owner)
    child = await store.create(CONFIGMAPS, child)
    grandchild = body(name='grandchild')
    store.set_owner(grandchild, child)
    await store.create(CONFIGMAPS, grandchild)
    await store.create(CONFIGMAPS, body(name='unrelated'))

    await store.delete(CONFIGMAPS, owner)

    assert store.namespaces_of(CONFIGMAPS, 'owner') == set()
    assert store.namespaces_of(CONFIGMAPS, 'child') == set()
    assert store.namespaces_of(CONFIGMAPS, 'grandchild') == set()
    assert store.namespaces_of(CONFIGMAPS, 'unrelated') == {'ns1'}


async def test_direct_puts_are_not_recorded(store):
    store.put(CONFIGMAPS, body())
    assert store.history == []
    assert store.get(CONFIGMAPS, 'ns1', 'name1') is not None


async def test_injected_error_is_raised_once(store):
    exc = APIServerError(None, status=500)
    store.inject('create', exc)

    with pytest.raises(APIServerError) as err:
        await store.create(CONFIGMAPS, body())
    assert err.value is exc

    await store.create(CONFIGMAPS, body())
    assert store.history == [Action('create', 'ns1', 'name1')]


async def test_injected_error_for_specific_object(store):
    store.inject('read', APIServerError(None, status=500), namespace='ns2', name='name1')
    store.put(CONFIGMAPS, body(namespace='ns1'))
    store.put(CONFIGMAPS, body(namespace='ns2'))

    await store.read(CONFIGMAPS, 'ns1', 'name1')
    with pytest.raises(APIServerError):
        await store.read(CONFIGMAPS, 'ns2', 'name1')
    await store.read(CONFIGMAPS, 'ns2', 'name1')


async def test_injected_error_for_multiple_times(store):
    store.inject('list', APIServerError(None, status=500), times=2)

    with pytest.raises(APIServerError):
        await store.list(CONFIGMAPS, labels={})
    with pytest.raises(APIServerError):
        await store.list(CONFIGMAPS, labels={})
    assert await store.list(CONFIGMAPS, labels={}) == []


async def test_injected_error_forever(store):
    store.inject('delete', APIServerError(None, status=500), times=None)
    for _ in range(3):
        with pytest.raises(APIServerError):
            await store.delete(CONFIGMAPS, body())
    assert store.injections


def test_store_is_an_object_store():
    from reflector._core.reflection.stores import ObjectStore
    assert isinstance(MemoryStore(), ObjectStore)
