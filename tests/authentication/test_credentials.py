import base64

import aiohttp
import pytest

from reflector._cogs.clients.auth import APIContext, decode_to_pem
from reflector._cogs.structs.credentials import ConnectionInfo


async def test_session_is_closed_on_exit():
    info = ConnectionInfo(server='https://localhost')
    async with APIContext(info) as context:
        session = context.session
        assert isinstance(session, aiohttp.ClientSession)
        assert not session.closed
    assert session.closed


async def test_context_keeps_the_server_and_namespace():
    info = ConnectionInfo(server='https://localhost', default_namespace='ns')
    async with APIContext(info) as context:
        assert context.server == 'https://localhost'
        assert context.default_namespace == 'ns'


async def test_user_agent_is_set():
    info = ConnectionInfo(server='https://localhost')
    async with APIContext(info) as context:
        assert context.session.headers['User-Agent'].startswith('config-reflector/')


@pytest.mark.parametrize('scheme, token, expected', [
    (None, 'tkn', 'Bearer tkn'),
    ('Digest', 'tkn', 'Digest tkn'),
    ('Basic', None, 'Basic'),
])
async def test_authorization_header(scheme, token, expected):
    info = ConnectionInfo(server='https://localhost', scheme=scheme, token=token)
    async with APIContext(info) as context:
        assert context.session.headers['Authorization'] == expected


async def test_no_authorization_header_without_credentials():
    info = ConnectionInfo(server='https://localhost')
    async with APIContext(info) as context:
        assert 'Authorization' not in context.session.headers


async def test_basic_auth_from_username_and_password():
    info = ConnectionInfo(server='https://localhost', username='user', password='pass')
    async with APIContext(info) as context:
        assert context.session.auth == aiohttp.BasicAuth('user', 'pass')


@pytest.mark.parametrize('data', [
    '-----BEGIN CERTIFICATE-----\nxyz',
    b'-----BEGIN CERTIFICATE-----\nxyz',
    base64.b64encode(b'-----BEGIN CERTIFICATE-----\nxyz').decode('ascii'),
    base64.b64encode(b'-----BEGIN CERTIFICATE-----\nxyz'),
])
def test_pem_decoding(data):
    assert decode_to_pem(data) == '-----BEGIN CERTIFICATE-----\nxyz'
