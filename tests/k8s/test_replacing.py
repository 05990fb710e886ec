import aiohttp.web
import pytest

from reflector._cogs.clients.errors import APIConflictError, APIError, APINotFoundError
from reflector._cogs.clients.replacing import replace_obj


async def test_replacing_by_body_identity(
        resp_mocker, aresponses, hostname, settings, logger, resource, namespace):

    put_mock = resp_mocker(return_value=aiohttp.web.json_response({'replaced': True}))
    aresponses.add(hostname, resource.get_url(namespace=namespace, name='name1'), 'put', put_mock)

    body = {'metadata': {'namespace': namespace, 'name': 'name1', 'resourceVersion': '12'},
            'data': {'a': 'b'}}
    replaced = await replace_obj(resource=resource, body=body, settings=settings, logger=logger)

    assert replaced == {'replaced': True}
    assert put_mock.call_count == 1
    data = put_mock.call_args_list[0][0][0].data
    assert data == body


@pytest.mark.parametrize('status, exctype', [
    (404, APINotFoundError),
    (409, APIConflictError),
    (500, APIError),
])
async def test_raises_api_errors(
        resp_mocker, aresponses, hostname, settings, logger, resource, namespace,
        status, exctype):

    put_mock = resp_mocker(return_value=aresponses.Response(status=status))
    aresponses.add(hostname, resource.get_url(namespace=namespace, name='name1'), 'put', put_mock)

    body = {'metadata': {'namespace': namespace, 'name': 'name1'}}
    with pytest.raises(exctype) as e:
        await replace_obj(resource=resource, body=body, settings=settings, logger=logger)
    assert e.value.status == status
