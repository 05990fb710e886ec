"""
Object-aware logging of the reconciliation passes.

Every pass logs its decisions (creations, updates, deletions, skips) via
a logger bound to the source object. The object reference is carried in the
log records, and is then rendered either as a text prefix (``[ns/name]``),
or as a separate field in the JSON logs -- for the log parsers.
"""
import copy
import enum
import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, MutableMapping, Optional, TextIO, \
                   Tuple, Type, Union

from pythonjsonlogger.core import RESERVED_ATTRS
from pythonjsonlogger.json import JsonFormatter

from reflector._cogs.configs import configuration
from reflector._cogs.helpers import typedefs
from reflector._cogs.structs import bodies

logger = logging.getLogger('reflector.objects')

# The record attributes set by ObjectLogger; never dumped to JSON as is.
REF_ATTR = 'k8s_ref'
SETTINGS_ATTR = 'settings'

# A key for object references in JSON logs, as seen by the log parsers.
DEFAULT_JSON_REFKEY = 'object'

# The upper bounds of the levels for the "severity" field of JSON logs.
SEVERITIES = [
    (logging.DEBUG, 'debug'),
    (logging.INFO, 'info'),
    (logging.WARNING, 'warn'),
    (logging.ERROR, 'error'),
]


class LogFormat(enum.Enum):
    """ Log formats, as specified on CLI. """
    PLAIN = '%(message)s'
    FULL = '[%(asctime)s] %(name)-20.20s [%(levelname)-8.8s] %(message)s'
    JSON = '-json-'  # not used for formatting, only for detection


def get_object_ref(record: logging.LogRecord) -> Optional[Mapping[str, Any]]:
    return getattr(record, REF_ATTR, None)


def get_severity(levelno: int) -> str:
    for bound, severity in SEVERITIES:
        if levelno <= bound:
            return severity
    return 'fatal'


class ObjectFormatter(logging.Formatter):
    """ A base class of all formatters aware of the object references. """


class ObjectTextFormatter(ObjectFormatter):
    pass


class ObjectJsonFormatter(ObjectFormatter, JsonFormatter):
    """
    A JSON formatter with the object reference and the severity as fields.
    """

    def __init__(self, *args: Any, refkey: Optional[str] = None, **kwargs: Any) -> None:
        reserved = set(kwargs.pop('reserved_attrs', RESERVED_ATTRS))
        kwargs['reserved_attrs'] = reserved | {REF_ATTR, SETTINGS_ATTR}
        kwargs.setdefault('timestamp', True)
        super().__init__(*args, **kwargs)
        self.refkey: str = refkey or DEFAULT_JSON_REFKEY

    def add_fields(
            self,
            log_record: Dict[str, Any],
            record: logging.LogRecord,
            message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        ref = get_object_ref(record)
        if ref is not None:
            log_record[self.refkey] = ref
        log_record.setdefault('severity', get_severity(record.levelno))


class ObjectPrefixingMixin(ObjectFormatter):
    """ Put the object's ``[namespace/name]`` in front of the message. """

    def format(self, record: logging.LogRecord) -> str:
        ref = get_object_ref(record)
        if ref is not None:
            namespace, name = ref.get('namespace'), ref.get('name')
            prefix = f"[{namespace}/{name}]" if namespace else f"[{name}]"
            record = copy.copy(record)  # the other handlers must see the original message
            record.msg = f"{prefix} {record.msg}"
        return super().format(record)


class ObjectPrefixingTextFormatter(ObjectPrefixingMixin, ObjectTextFormatter):
    pass


class ObjectPrefixingJsonFormatter(ObjectPrefixingMixin, ObjectJsonFormatter):
    pass


class ObjectLogger(typedefs.LoggerAdapter):
    """
    A logger bound to a source object, as used by its reconciliation passes.

    The object reference is shaped as in K8s API (``apiVersion``, ``kind``,
    ``namespace``, ``name``, ``uid``), but nothing else of the body is carried.
    The extras of individual messages are merged with the object's extras.
    """

    def __init__(self, *, body: bodies.Body, settings: configuration.OperatorSettings) -> None:
        metadata = body.get('metadata', {})
        ref = {
            'apiVersion': body.get('apiVersion'),
            'kind': body.get('kind'),
            'name': metadata.get('name'),
            'uid': metadata.get('uid'),
            'namespace': metadata.get('namespace'),
        }
        super().__init__(logger, {SETTINGS_ATTR: settings, REF_ATTR: ref})

    def process(
            self,
            msg: str,
            kwargs: MutableMapping[str, Any],
    ) -> Tuple[str, MutableMapping[str, Any]]:
        kwargs['extra'] = {**(self.extra or {}), **kwargs.get('extra', {})}
        return msg, kwargs


# Marks the handlers added by configure(), so that re-configuring replaces them.
if TYPE_CHECKING:
    class _ReflectorStreamHandler(logging.StreamHandler[TextIO]):
        pass
else:
    class _ReflectorStreamHandler(logging.StreamHandler):
        pass


def configure(
        debug: Optional[bool] = None,
        verbose: Optional[bool] = None,
        quiet: Optional[bool] = None,
        log_format: Union[LogFormat, str] = LogFormat.FULL,
        log_prefix: Optional[bool] = False,
        log_refkey: Optional[str] = None,
) -> None:
    """
    Set up the root logger for the CLI runs: the level, the format, the handler.
    """
    handler = _ReflectorStreamHandler()
    handler.setFormatter(make_formatter(log_format=log_format, log_prefix=log_prefix,
                                        log_refkey=log_refkey))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing, _ReflectorStreamHandler):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug or verbose else logging.WARNING if quiet else logging.INFO)

    # The asyncio's own messages are shown only in the debug mode.
    asyncio_logger = logging.getLogger('asyncio')
    asyncio_logger.propagate = bool(debug)
    if not debug:
        asyncio_logger.handlers[:] = [logging.NullHandler()]


def make_formatter(
        log_format: Union[LogFormat, str] = LogFormat.FULL,
        log_prefix: Optional[bool] = False,
        log_refkey: Optional[str] = None,
) -> ObjectFormatter:
    """
    Build a formatter for a format name or a %-style format string.

    If the prefixing is not specified, the text logs are prefixed and JSON logs are not,
    since the latter have the object reference as a separate field.
    """
    is_json = log_format is LogFormat.JSON
    prefixed = log_prefix if log_prefix is not None else not is_json
    if is_json:
        cls: Type[ObjectJsonFormatter] = (
            ObjectPrefixingJsonFormatter if prefixed else ObjectJsonFormatter)
        return cls(refkey=log_refkey)

    if isinstance(log_format, LogFormat):
        fmt = log_format.value
    elif isinstance(log_format, str):
        fmt = log_format
    else:
        raise ValueError(f"Unsupported log format: {log_format!r}")
    return ObjectPrefixingTextFormatter(fmt) if prefixed else ObjectTextFormatter(fmt)
