"""
All configuration flags, options, settings to fine-tune the reflector.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

Some of the settings are flags, some are scalars, some are optional,
some are not (but all of them have reasonable defaults).
"""
import dataclasses
from typing import Iterable, Optional, Union

DEFAULT_PREFIX = 'configreflector.github.io/'


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: Optional[float] = 5 * 60  # == aiohttp.client.DEFAULT_TIMEOUT
    """
    A timeout for the API requests (in seconds). Once exceeded, the request
    is considered failed and is retried according to ``error_backoffs``.
    """

    connect_timeout: Optional[float] = None
    """
    A timeout for the TCP/SSL connection establishment (in seconds).
    """

    error_backoffs: Union[float, Iterable[float]] = (1, 1, 2, 3, 5, 8)
    """
    Backoff intervals in case of retryable API errors (5xx, connectivity, timeouts).

    Every request is attempted once plus as many times as there are intervals.
    Only the individual HTTP request is retried, not the whole reconciliation.
    If the request still fails, the error is escalated to the reconciler,
    which reports the pass as retryable for the dispatching layer.

    To disable the in-request retries, set it to ``[]`` or ``()``.
    """


@dataclasses.dataclass
class ReflectionSettings:

    prefix: str = DEFAULT_PREFIX
    """
    A common prefix of the control annotations and the provenance labels,
    including the trailing slash: e.g. ``"configreflector.github.io/"``.

    All annotations of the source objects starting with this prefix are
    considered control annotations and are never copied into the reflections.
    """


@dataclasses.dataclass
class ReconcilingSettings:

    retry_delay: float = 60
    """
    How soon (in seconds) a failed pass should be retried by the dispatcher
    in case of transient errors (connectivity, server-side errors, timeouts).
    """

    conflict_delay: float = 0
    """
    How soon (in seconds) a pass should be retried after a conflict.
    Conflicts are expected with concurrent passes, so they are retried instantly.
    """

    pass_timeout: Optional[float] = None
    """
    The maximum duration of one reconciliation pass (in seconds).
    An exceeded timeout is reported as a retryable failure of the pass.
    If ``None`` (the default), the pass is bound only by the request timeouts.
    """

    concurrency: int = 5
    """
    How many passes for distinct objects can run at the same time
    when multiple objects are reconciled in one go (e.g. on a resync).
    """


@dataclasses.dataclass
class OperatorSettings:
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    reflection: ReflectionSettings = dataclasses.field(default_factory=ReflectionSettings)
    reconciling: ReconcilingSettings = dataclasses.field(default_factory=ReconcilingSettings)
