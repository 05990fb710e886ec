import logging

import pytest

from reflector._cogs.structs.credentials import ConnectionInfo, LoginError
from reflector._core.intents.piggybacking import login

logger = logging.getLogger(__name__)


@pytest.fixture()
def sa_info():
    return ConnectionInfo(server='https://sa', priority=20)


@pytest.fixture()
def kc_info():
    return ConnectionInfo(server='https://kc', priority=10)


def test_login_fails_when_nothing_is_available(mocker):
    mocker.patch('reflector._core.intents.piggybacking.login_with_service_account',
                 return_value=None)
    mocker.patch('reflector._core.intents.piggybacking.login_with_kubeconfig',
                 return_value=None)
    with pytest.raises(LoginError):
        login(logger=logger)


def test_login_with_only_the_kubeconfig(mocker, kc_info):
    mocker.patch('reflector._core.intents.piggybacking.login_with_service_account',
                 return_value=None)
    mocker.patch('reflector._core.intents.piggybacking.login_with_kubeconfig',
                 return_value=kc_info)
    assert login(logger=logger) is kc_info


def test_login_with_only_the_service_account(mocker, sa_info):
    mocker.patch('reflector._core.intents.piggybacking.login_with_service_account',
                 return_value=sa_info)
    mocker.patch('reflector._core.intents.piggybacking.login_with_kubeconfig',
                 return_value=None)
    assert login(logger=logger) is sa_info


def test_login_prefers_the_service_account(mocker, sa_info, kc_info):
    mocker.patch('reflector._core.intents.piggybacking.login_with_service_account',
                 return_value=sa_info)
    mocker.patch('reflector._core.intents.piggybacking.login_with_kubeconfig',
                 return_value=kc_info)
    assert login(logger=logger) is sa_info


def test_login_priorities_are_patchable(mocker, kc_info):
    preferred = ConnectionInfo(server='https://kc', priority=99)
    mocker.patch('reflector._core.intents.piggybacking.login_with_service_account',
                 return_value=ConnectionInfo(server='https://sa', priority=20))
    mocker.patch('reflector._core.intents.piggybacking.login_with_kubeconfig',
                 return_value=preferred)
    assert login(logger=logger) is preferred


def test_login_errors_are_escalated(mocker):
    mocker.patch('reflector._core.intents.piggybacking.login_with_service_account',
                 return_value=None)
    mocker.patch('reflector._core.intents.piggybacking.login_with_kubeconfig',
                 side_effect=LoginError("boo!"))
    with pytest.raises(LoginError, match="boo!"):
        login(logger=logger)
