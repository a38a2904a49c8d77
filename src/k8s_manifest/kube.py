"""Low-level Kubernetes client helpers for manifest reconciliation."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from kubernetes import config
from kubernetes.client import ApiException
from kubernetes.dynamic import DynamicClient, ResourceInstance

from .config import ClusterContext
from .document import ResourceObject
from .errors import ResourceNotFoundError

_LOG = logging.getLogger(__name__)


class ClusterClient(Protocol):
    """The operations the reconciler needs from a cluster API client."""

    def create(self, obj: ResourceObject) -> None:
        ...

    def get(self, obj: ResourceObject) -> ResourceObject:
        ...

    def update(self, obj: ResourceObject) -> None:
        ...

    def delete(self, obj: ResourceObject) -> None:
        ...


def _as_dict(result: Any) -> Dict[str, Any]:
    return result.to_dict() if isinstance(result, ResourceInstance) else result


class KubernetesClusterClient:
    """Generic create/get/update/delete of any kind through the dynamic client.

    Calls update the passed object in place with what the API server returned.
    A 404 from the server is raised as :class:`ResourceNotFoundError`.
    """

    def __init__(self, context: ClusterContext, dynamic: Optional[DynamicClient] = None) -> None:
        self.context = context
        if dynamic is None:
            api_client = config.new_client_from_config(
                config_file=context.kubeconfig,
                context=context.context,
            )
            api_client.configuration.verify_ssl = context.verify_ssl
            dynamic = DynamicClient(api_client)
        self.dynamic = dynamic

    def _resource(self, obj: ResourceObject) -> Any:
        return self.dynamic.resources.get(api_version=obj.api_version, kind=obj.kind)

    @staticmethod
    def _namespace_for(resource: Any, obj: ResourceObject) -> Optional[str]:
        if not resource.namespaced:
            return None
        return obj.namespace or None

    @staticmethod
    def _not_found(exc: ApiException, obj: ResourceObject) -> ResourceNotFoundError:
        return ResourceNotFoundError(f"{obj.describe()} not found: {exc.reason}")

    def create(self, obj: ResourceObject) -> None:
        resource = self._resource(obj)
        _LOG.info("Creating %s", obj.describe())
        created = resource.create(
            body=obj.to_dict(),
            namespace=self._namespace_for(resource, obj),
            field_manager=self.context.field_manager,
        )
        obj.replace(_as_dict(created))

    def get(self, obj: ResourceObject) -> ResourceObject:
        resource = self._resource(obj)
        try:
            current = resource.get(name=obj.name, namespace=self._namespace_for(resource, obj))
        except ApiException as exc:
            if exc.status == 404:
                raise self._not_found(exc, obj) from exc
            raise
        obj.replace(_as_dict(current))
        _LOG.debug("Received object %s: %s", obj.describe(), obj.document)
        return obj

    def update(self, obj: ResourceObject) -> None:
        resource = self._resource(obj)
        namespace = self._namespace_for(resource, obj)
        try:
            existing = _as_dict(resource.get(name=obj.name, namespace=namespace))
        except ApiException as exc:
            if exc.status == 404:
                raise self._not_found(exc, obj) from exc
            raise

        resource_version = existing.get("metadata", {}).get("resourceVersion")
        if resource_version:
            obj.resource_version = resource_version

        _LOG.info("Updating %s", obj.describe())
        updated = resource.replace(
            name=obj.name,
            namespace=namespace,
            body=obj.to_dict(),
            field_manager=self.context.field_manager,
        )
        obj.replace(_as_dict(updated))

    def delete(self, obj: ResourceObject) -> None:
        resource = self._resource(obj)
        _LOG.info("Deleting %s", obj.describe())
        try:
            resource.delete(name=obj.name, namespace=self._namespace_for(resource, obj))
        except ApiException as exc:
            if exc.status == 404:
                raise self._not_found(exc, obj) from exc
            raise
