"""
Login to the K8s API with the credentials found in the environment.

Two sources are supported: the in-cluster service account (when the reflector
runs as a pod) and the kubeconfig files (when it runs on a workstation).
Only the raw values are taken from them. Nothing is executed or refreshed:
neither the exec-plugins nor the auth-providers, except for their cached tokens.

.. seealso::
    :mod:`credentials` and :mod:`auth`.
"""
import os
from typing import Any, Dict, List, Mapping, Optional

import yaml

from reflector._cogs.helpers import typedefs
from reflector._cogs.structs import credentials

# Higher priority is more preferred. Module-level, so that they can be patched.
PRIORITY_OF_KUBECONFIG: int = 10
PRIORITY_OF_SERVICE_ACCOUNT: int = 20

# As per https://kubernetes.io/docs/tasks/run-application/access-api-from-pod/
SERVICE_ACCOUNT_DIR = '/var/run/secrets/kubernetes.io/serviceaccount'
IN_CLUSTER_SERVER = 'https://kubernetes.default.svc'

DEFAULT_KUBECONFIG = '~/.kube/config'


def login(
        *,
        logger: typedefs.Logger,
) -> credentials.ConnectionInfo:
    """
    Pick the most preferred credentials of those available in the environment.
    """
    found: List[credentials.ConnectionInfo] = []
    for info in [login_with_service_account(logger=logger), login_with_kubeconfig(logger=logger)]:
        if info is not None:
            found.append(info)
    if not found:
        raise credentials.LoginError("Neither the kubeconfig, nor the service account is found.")
    return max(found, key=lambda info: info.priority)


def _read_stripped(path: str) -> Optional[str]:
    if not os.path.exists(path):
        return None
    with open(path, encoding='utf-8') as f:
        return f.read().strip() or None


def login_with_service_account(
        *,
        logger: Optional[typedefs.Logger] = None,
        **_: Any,
) -> Optional[credentials.ConnectionInfo]:
    """
    Use the service account's token as mounted into the pod, if it is mounted.
    """
    token_path = os.path.join(SERVICE_ACCOUNT_DIR, 'token')
    if not os.path.exists(token_path):
        return None

    ca_path = os.path.join(SERVICE_ACCOUNT_DIR, 'ca.crt')
    info = credentials.ConnectionInfo(
        server=IN_CLUSTER_SERVER,
        token=_read_stripped(token_path),
        default_namespace=_read_stripped(os.path.join(SERVICE_ACCOUNT_DIR, 'namespace')),
        ca_path=ca_path if os.path.exists(ca_path) else None,
        priority=PRIORITY_OF_SERVICE_ACCOUNT,
    )
    if logger is not None:
        logger.debug("Logged in with the in-cluster service account.")
    return info


def _kubeconfig_paths() -> List[str]:
    # As per https://kubernetes.io/docs/concepts/configuration/organize-cluster-access-kubeconfig/
    value = os.environ.get('KUBECONFIG')
    if not value:
        value = DEFAULT_KUBECONFIG if os.path.exists(os.path.expanduser(DEFAULT_KUBECONFIG)) else ''
    return [os.path.expanduser(path.strip()) for path in value.split(os.pathsep) if path.strip()]


def _merge_kubeconfigs(paths: List[str]) -> Dict[str, Any]:
    """
    Merge several kubeconfig files into one, the earliest value of each key winning.

    The absent or broken files fail the login instead of being skipped.
    """
    merged: Dict[str, Any] = {
        'current-context': None,
        'contexts': {},
        'clusters': {},
        'users': {},
    }
    for path in paths:
        with open(path, encoding='utf-8') as f:
            config: Mapping[str, Any] = yaml.safe_load(f.read()) or {}

        if merged['current-context'] is None:
            merged['current-context'] = config.get('current-context')
        for section, field in [('contexts', 'context'), ('clusters', 'cluster'), ('users', 'user')]:
            for item in config.get(section) or []:
                merged[section].setdefault(item['name'], item.get(field) or {})
    return merged


def login_with_kubeconfig(
        *,
        logger: Optional[typedefs.Logger] = None,
        **_: Any,
) -> Optional[credentials.ConnectionInfo]:
    """
    Use the current context of the kubeconfig files, if there are any.

    The files are taken from ``$KUBECONFIG`` (several can be separated
    by the OS's path separator), or from ``~/.kube/config`` if it exists.
    """
    paths = _kubeconfig_paths()
    if not paths:
        return None

    config = _merge_kubeconfigs(paths)
    name = config['current-context']
    if name is None:
        raise credentials.LoginError("The current context is not set in the kubeconfigs.")
    if name not in config['contexts']:
        raise credentials.LoginError(f"The current context {name!r} is not found.")

    context = config['contexts'][name]
    cluster = config['clusters'].get(context.get('cluster'), {})
    user = config['users'].get(context.get('user'), {})
    cached_token = user.get('auth-provider', {}).get('config', {}).get('access-token')

    if logger is not None:
        logger.debug(f"Logged in with the kubeconfig context {name!r}.")

    return credentials.ConnectionInfo(
        server=cluster.get('server'),
        ca_path=cluster.get('certificate-authority'),
        ca_data=cluster.get('certificate-authority-data'),
        insecure=cluster.get('insecure-skip-tls-verify'),
        certificate_path=user.get('client-certificate'),
        certificate_data=user.get('client-certificate-data'),
        private_key_path=user.get('client-key'),
        private_key_data=user.get('client-key-data'),
        username=user.get('username'),
        password=user.get('password'),
        token=user.get('token') or cached_token,
        default_namespace=context.get('namespace'),
        priority=PRIORITY_OF_KUBECONFIG,
    )
