import functools
from typing import Any, Callable, Collection, Optional

import click

from reflector._cogs.clients import patching
from reflector._cogs.configs import configuration
from reflector._cogs.structs import references
from reflector._core.actions import loggers
from reflector._core.reactor import running
from reflector._core.reflection import annotations, kinds, stores


class LogFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.name.lower() for v in loggers.LogFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> loggers.LogFormat:
        name: str = super().convert(value, param, ctx)
        return loggers.LogFormat[name.upper()]


class KindParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=list(kinds.KINDS), case_sensitive=False)

    def convert(self, value: Any, param: Any, ctx: Any) -> kinds.Kind:
        if isinstance(value, kinds.Kind):
            return value
        name: str = super().convert(value, param, ctx)
        return kinds.KINDS[name.lower()]


class ObjectKeyParamType(click.ParamType):
    name = 'namespace/name'

    def convert(self, value: Any, param: Any, ctx: Any) -> references.ObjectKey:
        if isinstance(value, references.ObjectKey):
            return value
        try:
            return references.ObjectKey.parse(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


def logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to configure logging in all commands the same way."""
    @click.option('-v', '--verbose', is_flag=True)
    @click.option('-d', '--debug', is_flag=True)
    @click.option('-q', '--quiet', is_flag=True)
    @click.option('--log-format', type=LogFormatParamType(), default='full')
    @click.option('--log-refkey', type=str)
    @click.option('--log-prefix/--no-log-prefix', default=None)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(verbose: bool, quiet: bool, debug: bool,
                log_format: loggers.LogFormat = loggers.LogFormat.FULL,
                log_prefix: Optional[bool] = False,
                log_refkey: Optional[str] = None,
                *args: Any, **kwargs: Any) -> Any:
        loggers.configure(debug=debug, verbose=verbose, quiet=quiet,
                          log_format=log_format, log_refkey=log_refkey, log_prefix=log_prefix)
        return fn(*args, **kwargs)

    return wrapper


def settings_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to build the settings in all commands the same way."""
    @click.option('--prefix', type=str, default=configuration.DEFAULT_PREFIX)
    @click.option('--timeout', type=float, default=None)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(prefix: str, timeout: Optional[float], *args: Any, **kwargs: Any) -> Any:
        settings = configuration.OperatorSettings()
        settings.reflection.prefix = prefix
        settings.reconciling.pass_timeout = timeout
        return fn(*args, settings=settings, **kwargs)

    return wrapper


def report(outcomes: running.Outcomes) -> bool:
    """ Print the outcomes of the passes, and tell if all of them have succeeded. """
    for key, outcome in outcomes.items():
        if outcome.succeeded:
            status = f"succeeded with {len(outcome.actions)} action(s)"
        elif outcome.retryable:
            status = f"should be retried in {outcome.delay}s: {outcome.exception}"
        else:
            status = f"failed: {outcome.exception}"
        click.echo(f"{key}: {status}")
    return all(outcome.succeeded for outcome in outcomes.values())


@click.version_option(prog_name='reflector')
@click.group(name='reflector', context_settings=dict(
    auto_envvar_prefix='REFLECTOR',
))
def main() -> None:
    pass


@main.command()
@logging_options
@settings_options
@click.argument('kind', type=KindParamType())
@click.argument('key', type=ObjectKeyParamType())
def reconcile(
        kind: kinds.Kind,
        key: references.ObjectKey,
        settings: configuration.OperatorSettings,
) -> None:
    """ Reconcile the reflections of one source object once. """

    async def command(store: stores.ObjectStore) -> running.Outcomes:
        return await running.reconcile_keys(kind, [key], store=store, settings=settings)

    outcomes = running.run(command, settings=settings)
    if not report(outcomes):
        raise click.exceptions.Exit(1)


@main.command()
@logging_options
@settings_options
@click.option('-n', '--namespace', 'namespaces', multiple=True)
@click.argument('kind', type=KindParamType())
def resync(
        kind: kinds.Kind,
        namespaces: Collection[str],
        settings: configuration.OperatorSettings,
) -> None:
    """ Reconcile the reflections of all the controlled source objects once. """

    async def command(store: stores.ObjectStore) -> running.Outcomes:
        return await running.resync(kind, store=store, settings=settings, namespaces=namespaces)

    outcomes = running.run(command, settings=settings)
    if not report(outcomes):
        raise click.exceptions.Exit(1)


@main.command()
@logging_options
@settings_options
@click.option('--to', 'namespaces', multiple=True)
@click.option('--labels/--no-labels', default=False)
@click.option('--annotations/--no-annotations', 'with_annotations', default=False)
@click.argument('kind', type=KindParamType())
@click.argument('key', type=ObjectKeyParamType())
def annotate(
        kind: kinds.Kind,
        key: references.ObjectKey,
        namespaces: Collection[str],
        labels: bool,
        with_annotations: bool,
        settings: configuration.OperatorSettings,
) -> None:
    """ Put a source object under control, or release it with no namespaces. """
    patch = {'metadata': {'annotations': annotations.build_control_annotations(
        list(namespaces),
        labels=labels,
        annotations=with_annotations,
        markers=annotations.Markers.from_settings(settings),
    )}}

    async def command(store: stores.ObjectStore) -> None:
        await patching.patch_obj(
            resource=kind.resource,
            namespace=references.NamespaceName(key.namespace),
            name=key.name,
            patch=patch,
            settings=settings,
            logger=running.logger,
        )

    running.run(command, settings=settings)
    if namespaces:
        click.echo(f"{key}: reflected to {annotations.serialize_namespaces(namespaces)}")
    else:
        click.echo(f"{key}: released from control")
