import dataclasses

import pytest

from reflector._cogs.structs.credentials import ConnectionInfo


def test_creation_with_minimal_fields():
    info = ConnectionInfo(
        server='https://localhost',
    )
    assert info.server == 'https://localhost'
    assert info.ca_path is None
    assert info.ca_data is None
    assert info.insecure is None
    assert info.username is None
    assert info.password is None
    assert info.scheme is None
    assert info.token is None
    assert info.certificate_path is None
    assert info.certificate_data is None
    assert info.private_key_path is None
    assert info.private_key_data is None
    assert info.default_namespace is None
    assert info.priority == 0


def test_connection_info_is_frozen():
    info = ConnectionInfo(server='https://localhost')
    with pytest.raises(dataclasses.FrozenInstanceError):
        info.server = 'https://elsewhere'  # type: ignore
