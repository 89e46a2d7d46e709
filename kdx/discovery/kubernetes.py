"""ResourceProvider backed by kubernetes-asyncio."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio import config as k8s_config  # type: ignore[import-untyped]
from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]

from kdx.discovery import converters
from kdx.discovery.provider import ResourceProvider
from kdx.errors import ProviderError, ResourceNotFoundError
from kdx.models.resources import CRDInfo, CustomResourceInfo, ResourceKind, ResourceRecord
from kdx.observability.logging import get_logger
from kdx.selector import LabelSelector

_log = get_logger("discovery.kubernetes")

# kind -> (api group attribute, namespaced list method, all-namespaces list method)
_LIST_METHODS: dict[ResourceKind, tuple[str, str, str]] = {
    ResourceKind.SERVICES: ("core", "list_namespaced_service", "list_service_for_all_namespaces"),
    ResourceKind.PODS: ("core", "list_namespaced_pod", "list_pod_for_all_namespaces"),
    ResourceKind.CONFIGMAPS: ("core", "list_namespaced_config_map", "list_config_map_for_all_namespaces"),
    ResourceKind.SECRETS: ("core", "list_namespaced_secret", "list_secret_for_all_namespaces"),
    ResourceKind.DEPLOYMENTS: ("apps", "list_namespaced_deployment", "list_deployment_for_all_namespaces"),
    ResourceKind.STATEFULSETS: ("apps", "list_namespaced_stateful_set", "list_stateful_set_for_all_namespaces"),
    ResourceKind.DAEMONSETS: ("apps", "list_namespaced_daemon_set", "list_daemon_set_for_all_namespaces"),
}

_SIMPLE_CONVERTERS: dict[ResourceKind, Callable[[dict[str, Any]], ResourceRecord | None]] = {
    ResourceKind.SERVICES: converters.service_from_raw,
    ResourceKind.PODS: converters.pod_from_raw,
    ResourceKind.DEPLOYMENTS: converters.deployment_from_raw,
    ResourceKind.STATEFULSETS: converters.statefulset_from_raw,
    ResourceKind.DAEMONSETS: converters.daemonset_from_raw,
}


class KubernetesProvider(ResourceProvider):
    """Lists resources through the Kubernetes API with paginated calls."""

    def __init__(self, api_client: Any, page_size: int = 100) -> None:
        self._api_client = api_client
        self._page_size = page_size
        self._apis: dict[str, Any] = {
            "core": k8s_client.CoreV1Api(api_client),
            "apps": k8s_client.AppsV1Api(api_client),
        }
        self._extensions = k8s_client.ApiextensionsV1Api(api_client)
        self._custom = k8s_client.CustomObjectsApi(api_client)

    @classmethod
    async def connect(cls, context: str | None = None, page_size: int = 100) -> KubernetesProvider:
        """Load cluster credentials and return a ready provider.

        An explicit *context* always reads kubeconfig; otherwise in-cluster
        service-account config is tried first.
        """
        if context:
            await k8s_config.load_kube_config(context=context)
            _log.info("k8s client configured from kubeconfig", context=context)
        else:
            try:
                # load_incluster_config() is synchronous in kubernetes-asyncio
                k8s_config.load_incluster_config()
                _log.info("k8s client configured from in-cluster service account")
            except k8s_config.ConfigException:
                await k8s_config.load_kube_config()
                _log.info("k8s client configured from kubeconfig")
        return cls(k8s_client.ApiClient(), page_size=page_size)

    async def close(self) -> None:
        await self._api_client.close()

    # ------------------------------------------------------------------
    # ResourceProvider
    # ------------------------------------------------------------------

    async def list_namespaces(self) -> list[str]:
        items = await self._paginate(self._apis["core"].list_namespace, "list namespaces")
        return sorted(item["metadata"]["name"] for item in items if item.get("metadata", {}).get("name"))

    async def list_resources(
        self,
        kind: ResourceKind,
        namespace: str | None = None,
        selector: str | None = None,
    ) -> list[ResourceRecord]:
        if kind not in _LIST_METHODS:
            raise ValueError(f"{kind} is not a namespaced built-in kind")

        # Services are selected by spec.selector, which the API cannot filter on.
        server_selector = None if kind is ResourceKind.SERVICES else selector
        raw_items = await self._list_raw(kind, namespace, server_selector)

        if kind in (ResourceKind.CONFIGMAPS, ResourceKind.SECRETS):
            raw_pods = await self._list_raw(ResourceKind.PODS, namespace, None)
            usage = converters.index_config_usage(raw_pods)
            convert = converters.configmap_from_raw if kind is ResourceKind.CONFIGMAPS else converters.secret_from_raw
            records = [convert(raw, usage) for raw in raw_items]
        else:
            records = [_SIMPLE_CONVERTERS[kind](raw) for raw in raw_items]

        result = [record for record in records if record is not None]
        if kind is ResourceKind.SERVICES and selector:
            compiled = LabelSelector.parse(selector)
            result = [r for r in result if r.selection_labels is not None and compiled.matches(r.selection_labels)]

        _log.debug("resources_listed", kind=str(kind), namespace=namespace or "all", count=len(result))
        return result

    async def list_crds(self) -> list[CRDInfo]:
        items = await self._paginate(self._extensions.list_custom_resource_definition, "list crds")
        return [crd for crd in (converters.crd_from_raw(raw) for raw in items) if crd is not None]

    async def list_custom_resources(
        self,
        crd_name: str,
        namespace: str | None = None,
    ) -> list[CustomResourceInfo]:
        try:
            crd = await self._extensions.read_custom_resource_definition(crd_name)
        except ApiException as exc:
            if exc.status == 404:
                raise ResourceNotFoundError("CustomResourceDefinition", crd_name, "cluster") from exc
            raise ProviderError(f"read crd {crd_name}", exc) from exc

        raw_crd = self._api_client.sanitize_for_serialization(crd)
        spec = raw_crd.get("spec") or {}
        group = spec.get("group", "")
        plural = (spec.get("names") or {}).get("plural", "")
        version = converters.storage_version(raw_crd)

        try:
            if namespace and spec.get("scope") == "Namespaced":
                response = await self._custom.list_namespaced_custom_object(group, version, namespace, plural)
            else:
                response = await self._custom.list_cluster_custom_object(group, version, plural)
        except ApiException as exc:
            raise ProviderError(f"list {crd_name}", exc) from exc

        records = (converters.custom_resource_from_raw(raw, crd_name) for raw in response.get("items") or [])
        return [record for record in records if record is not None]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _list_raw(
        self,
        kind: ResourceKind,
        namespace: str | None,
        selector: str | None,
    ) -> list[dict[str, Any]]:
        api_name, namespaced, cluster_wide = _LIST_METHODS[kind]
        api = self._apis[api_name]
        operation = f"list {kind} in {namespace or 'all namespaces'}"
        if namespace:
            method = getattr(api, namespaced)
            return await self._paginate(method, operation, namespace, label_selector=selector)
        return await self._paginate(getattr(api, cluster_wide), operation, label_selector=selector)

    async def _paginate(self, method: Callable[..., Any], operation: str, *args: Any, **kwargs: Any) -> list[dict[str, Any]]:
        """Follow ``metadata.continue`` tokens until the listing is exhausted."""
        items: list[dict[str, Any]] = []
        token: str | None = None
        while True:
            try:
                response = await method(*args, limit=self._page_size, _continue=token, **kwargs)
            except ApiException as exc:
                raise ProviderError(operation, exc) from exc
            items.extend(self._api_client.sanitize_for_serialization(item) for item in response.items or [])
            token = getattr(response.metadata, "_continue", None) if response.metadata else None
            if not token:
                return items
