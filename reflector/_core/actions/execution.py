"""
The outcomes of the reconciliation passes, and the errors to classify them.

The reconciler never raises the store errors to its caller. Instead, every pass
ends with an :class:`Outcome`, which tells the dispatching layer whether
the pass is finished (successfully or not), or should be retried and when.
"""
import dataclasses
from typing import Optional, Tuple

from typing_extensions import Literal

# The default delay duration for the regular exception in retry-mode.
DEFAULT_RETRY_DELAY = 1 * 60


class PermanentError(Exception):
    """ A fatal reconciliation error, the retries are useless. """


class TemporaryError(Exception):
    """ A potentially recoverable error, should be retried. """
    def __init__(
            self,
            __msg: Optional[str] = None,
            delay: Optional[float] = DEFAULT_RETRY_DELAY,
    ) -> None:
        super().__init__(__msg)
        self.delay = delay


Verb = Literal['create', 'update', 'delete']


@dataclasses.dataclass(frozen=True)
class Action:
    """ A single mutating call made to the store during a pass. """
    verb: Verb
    namespace: str
    name: str


@dataclasses.dataclass(frozen=True)
class Outcome:
    """
    An in-memory outcome of one single reconciliation pass.

    Conceptually, an outcome is similar to the async futures, but some cases
    are handled specially: e.g., the temporary errors have exceptions,
    but the pass should be retried later, unlike with the permanent errors.
    """
    final: bool
    delay: Optional[float] = None
    exception: Optional[BaseException] = None
    actions: Tuple[Action, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.final and self.exception is None

    @property
    def failed(self) -> bool:
        return self.final and self.exception is not None

    @property
    def retryable(self) -> bool:
        return not self.final
