"""kdx command-line interface.

Every listing command follows the same pipeline: validate the selector,
list through the DiscoveryEngine (cache first, provider on miss), filter
with ResourceFilter, optionally group with ResourceGrouper, then render.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TypeVar

import click

from kdx import __version__
from kdx.cache import ResourceCache
from kdx.config import OUTPUT_FORMATS, load_config
from kdx.discovery import NAMESPACED_KINDS, DiscoveryEngine, ResourceProvider
from kdx.errors import KdxError, ProviderError, SelectorParseError
from kdx.filtering import ResourceFilter, ResourceGrouper, compile_selector, parse_group_by
from kdx.models.config import KdxConfig
from kdx.models.filtering import FilterCriteria
from kdx.models.resources import CRDInfo, ResourceKind, ResourceRecord
from kdx.observability.logging import get_logger, setup_logging
from kdx.output import print_cache_stats, print_grouped, print_records

T = TypeVar("T")

ProviderFactory = Callable[[KdxConfig], Awaitable[ResourceProvider]]


async def _connect_kubernetes(config: KdxConfig) -> ResourceProvider:
    # Import lazily: kubernetes-asyncio is only needed when talking to a cluster.
    from kubernetes_asyncio.config import ConfigException  # type: ignore[import-untyped]

    from kdx.discovery.kubernetes import KubernetesProvider

    try:
        return await KubernetesProvider.connect(
            context=config.discovery.context or None,
            page_size=config.discovery.page_size,
        )
    except ConfigException as exc:
        raise ProviderError("load cluster configuration", exc) from exc


@dataclass
class CliState:
    """Objects shared by every command of one invocation."""

    provider_factory: ProviderFactory = _connect_kubernetes
    config: KdxConfig = field(default_factory=KdxConfig)
    cache: ResourceCache | None = None
    namespace: str | None = None


def _run(state: CliState, action: Callable[[DiscoveryEngine], Awaitable[T]]) -> T:
    """Connect a provider, run *action* against an engine, always close."""
    log = get_logger("cli")

    async def _main() -> T:
        provider = await state.provider_factory(state.config)
        try:
            engine = DiscoveryEngine(provider, state.cache, state.config.discovery.concurrency)
            return await action(engine)
        finally:
            await provider.close()

    try:
        return asyncio.run(_main())
    except SelectorParseError as exc:
        raise click.UsageError(f"invalid label selector: {exc}") from exc
    except KdxError as exc:
        log.error("command failed", error=str(exc))
        raise click.ClickException(str(exc)) from exc
    except Exception as exc:
        # Transport failures (unreachable API server, TLS, DNS) surface here.
        log.error("command failed", error=str(exc), error_type=type(exc).__name__)
        raise click.ClickException(f"{type(exc).__name__}: {exc}") from exc


def _validate_selector(selector: str | None) -> None:
    if selector is None:
        return
    try:
        compile_selector(selector)
    except SelectorParseError as exc:
        raise click.BadParameter(str(exc), param_hint="'--selector'") from exc


def _render(kind: ResourceKind, records: list[ResourceRecord], group_by: str | None, fmt: str) -> None:
    if group_by:
        grouped = ResourceGrouper.group({kind: records}, parse_group_by(group_by))
        print_grouped(grouped, fmt)
    else:
        print_records(kind, records, fmt)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.option("--context", default=None, help="Kubernetes context to use.")
@click.option("-n", "--namespace", default=None, help="Default namespace for every command.")
@click.option("-o", "--output", type=click.Choice(OUTPUT_FORMATS), default=None, help="Output format.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging on stderr.")
@click.option("--concurrency", type=click.IntRange(1, 100), default=None, help="Parallel namespace listings.")
@click.option("--cache-ttl", type=click.IntRange(1, 86400), default=None, help="Cache TTL in seconds.")
@click.option("--no-cache", is_flag=True, help="Always query the cluster.")
@click.version_option(__version__, prog_name="kdx")
@click.pass_context
def cli(
    ctx: click.Context,
    context: str | None,
    namespace: str | None,
    output: str | None,
    verbose: bool,
    concurrency: int | None,
    cache_ttl: int | None,
    no_cache: bool,
) -> None:
    """Explore and discover resources in a Kubernetes cluster."""
    state = ctx.ensure_object(CliState)
    try:
        config = load_config()
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    if context:
        config.discovery.context = context
    if output:
        config.output.format = output
    if concurrency is not None:
        config.discovery.concurrency = concurrency
    if cache_ttl is not None:
        config.cache.ttl_seconds = cache_ttl
    if no_cache:
        config.cache.enabled = False
    if verbose:
        config.log.level = "debug"

    setup_logging(config.log.level)
    state.config = config
    state.namespace = namespace
    state.cache = ResourceCache(timedelta(seconds=config.cache.ttl_seconds)) if config.cache.enabled else None


# ---------------------------------------------------------------------------
# Namespaced listing commands
# ---------------------------------------------------------------------------


def _list_command(kind: ResourceKind, help_text: str, status_help: str | None = None) -> click.Command:
    @click.command(str(kind), help=help_text)
    @click.option("-n", "--namespace", default=None, help="Namespace to list.")
    @click.option("-A", "--all-namespaces", is_flag=True, help="List every namespace concurrently.")
    @click.option("-s", "--selector", default=None, help="Label selector, e.g. 'app=web,tier!=cache'.")
    @click.option("--group-by", default=None, help="app, tier, helm, namespace, none, or a label key.")
    @click.pass_obj
    def command(
        state: CliState,
        namespace: str | None,
        all_namespaces: bool,
        selector: str | None,
        group_by: str | None,
        status: str | None = None,
    ) -> None:
        _validate_selector(selector)
        ns = namespace or state.namespace

        async def _list(engine: DiscoveryEngine) -> list[ResourceRecord]:
            if all_namespaces:
                return await engine.list_across_namespaces(kind, selector=selector)
            return await engine.list(kind, ns, selector)

        records = _run(state, _list)
        records = ResourceFilter.filter(records, FilterCriteria(label_selector=selector, status_filter=status))
        _render(kind, records, group_by, state.config.output.format)

    if status_help:
        command = click.option("--status", default=None, help=status_help)(command)
    return command


cli.add_command(_list_command(ResourceKind.SERVICES, "List services."))
cli.add_command(
    _list_command(ResourceKind.PODS, "List pods.", status_help="Pod phase: Running, Pending, Failed, ...")
)
cli.add_command(
    _list_command(
        ResourceKind.DEPLOYMENTS,
        "List deployments.",
        status_help="Ready, NotReady or PartiallyReady.",
    )
)
cli.add_command(_list_command(ResourceKind.STATEFULSETS, "List stateful sets."))
cli.add_command(_list_command(ResourceKind.DAEMONSETS, "List daemon sets."))
cli.add_command(_list_command(ResourceKind.CONFIGMAPS, "List config maps and the pods using them."))
cli.add_command(_list_command(ResourceKind.SECRETS, "List secrets (key names only) and the pods using them."))


# ---------------------------------------------------------------------------
# CRDs and custom resources
# ---------------------------------------------------------------------------


@cli.command("crds")
@click.option("-s", "--selector", default=None, help="Label selector.")
@click.option("--group-by", default=None, help="app, tier, helm, namespace, none, or a label key.")
@click.option("--with-instances", is_flag=True, help="Only CRDs that have at least one instance.")
@click.pass_obj
def crds(state: CliState, selector: str | None, group_by: str | None, with_instances: bool) -> None:
    """List custom resource definitions."""
    _validate_selector(selector)

    async def _list(engine: DiscoveryEngine) -> list[CRDInfo]:
        return await engine.list_crds(count_instances=with_instances)

    records = ResourceFilter.filter(_run(state, _list), FilterCriteria(label_selector=selector))
    if with_instances:
        records = [crd for crd in records if crd.instance_count > 0]
    _render(ResourceKind.CRDS, list(records), group_by, state.config.output.format)


@cli.command("custom-resources")
@click.argument("crd_name")
@click.option("-n", "--namespace", default=None, help="Namespace to list.")
@click.option("-A", "--all-namespaces", is_flag=True, help="List across all namespaces.")
@click.option("-s", "--selector", default=None, help="Label selector.")
@click.option("--group-by", default=None, help="app, tier, helm, namespace, none, or a label key.")
@click.pass_obj
def custom_resources(
    state: CliState,
    crd_name: str,
    namespace: str | None,
    all_namespaces: bool,
    selector: str | None,
    group_by: str | None,
) -> None:
    """List instances of CRD_NAME (e.g. certificates.cert-manager.io)."""
    _validate_selector(selector)
    ns = None if all_namespaces else (namespace or state.namespace)

    async def _list(engine: DiscoveryEngine) -> list[ResourceRecord]:
        return list(await engine.list_custom_resources(crd_name, ns))

    records = ResourceFilter.filter(_run(state, _list), FilterCriteria(label_selector=selector))
    _render(ResourceKind.CUSTOM_RESOURCES, records, group_by, state.config.output.format)


# ---------------------------------------------------------------------------
# Cache management
# ---------------------------------------------------------------------------


@cli.group("cache")
def cache_group() -> None:
    """Inspect and manage the resource cache."""


@cache_group.command("stats")
@click.pass_obj
def cache_stats(state: CliState) -> None:
    """Show cache entry counts per kind and the default TTL."""
    print_cache_stats(state.cache.stats() if state.cache is not None else None, state.config.output.format)


@cache_group.command("clear")
@click.pass_obj
def cache_clear(state: CliState) -> None:
    """Remove every cached entry."""
    if state.cache is not None:
        state.cache.clear()
    click.echo("Cache cleared successfully")


@cache_group.command("cleanup")
@click.pass_obj
def cache_cleanup(state: CliState) -> None:
    """Remove expired entries only."""
    removed = state.cache.cleanup_expired() if state.cache is not None else 0
    click.echo(f"Removed {removed} expired cache entries")


@cache_group.command("warm")
@click.option("-N", "--namespaces", multiple=True, help="Namespace to warm (repeatable; default: all).")
@click.option("-r", "--resources", multiple=True, help="Resource kind to warm (repeatable).")
@click.pass_obj
def cache_warm(state: CliState, namespaces: tuple[str, ...], resources: tuple[str, ...]) -> None:
    """Pre-load listings into the cache."""
    if state.cache is None:
        raise click.UsageError("cache is disabled; drop --no-cache or set KDX_CACHE_ENABLED=true")

    kinds: list[ResourceKind] = []
    for name in resources:
        try:
            kind = ResourceKind.from_name(name)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="'--resources'") from exc
        if kind not in NAMESPACED_KINDS:
            supported = ", ".join(str(k) for k in NAMESPACED_KINDS)
            raise click.BadParameter(f"cannot warm {kind}; choose from {supported}", param_hint="'--resources'")
        kinds.append(kind)

    async def _warm(engine: DiscoveryEngine) -> int:
        return await engine.warm(list(namespaces) or None, kinds or None)

    warmed = _run(state, _warm)
    click.echo(f"Cache warmed successfully: {warmed} namespace/resource combinations loaded")
    print_cache_stats(state.cache.stats(), state.config.output.format)
