from unittest.mock import MagicMock

import pytest
from kubernetes.client import ApiException

from k8s_manifest.config import ClusterContext
from k8s_manifest.document import ResourceObject
from k8s_manifest.errors import ResourceNotFoundError
from k8s_manifest.kube import KubernetesClusterClient


def _build_object() -> ResourceObject:
    return ResourceObject(
        {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": {"name": "web", "namespace": "shop"},
            "spec": {"replicas": 1},
        }
    )


def _make_client():
    dynamic = MagicMock()
    resource = MagicMock()
    resource.namespaced = True
    dynamic.resources.get.return_value = resource
    return KubernetesClusterClient(ClusterContext(field_manager="tests"), dynamic=dynamic), resource


def test_create_sends_body_and_refreshes_object():
    client, resource = _make_client()
    obj = _build_object()
    resource.create.return_value = {**obj.to_dict(), "status": {}}

    client.create(obj)

    resource.create.assert_called_once_with(
        body=_build_object().document,
        namespace="shop",
        field_manager="tests",
    )
    assert obj.status == {}


def test_get_translates_not_found():
    client, resource = _make_client()
    resource.get.side_effect = ApiException(status=404, reason="Not Found")

    with pytest.raises(ResourceNotFoundError):
        client.get(_build_object())


def test_get_passes_other_errors_through():
    client, resource = _make_client()
    resource.get.side_effect = ApiException(status=500, reason="boom")

    with pytest.raises(ApiException):
        client.get(_build_object())


def test_cluster_scoped_kinds_ignore_namespace():
    client, resource = _make_client()
    resource.namespaced = False
    resource.get.return_value = {"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": "team"}}
    obj = ResourceObject({"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": "team", "namespace": "default"}})

    client.get(obj)

    resource.get.assert_called_once_with(name="team", namespace=None)
    assert obj.namespace == ""


def test_update_carries_live_resource_version():
    client, resource = _make_client()
    resource.get.return_value = {"metadata": {"name": "web", "resourceVersion": "42"}}
    resource.replace.return_value = {"metadata": {"name": "web", "resourceVersion": "43"}}
    obj = _build_object()

    client.update(obj)

    body = resource.replace.call_args.kwargs["body"]
    assert body["metadata"]["resourceVersion"] == "42"
    assert obj.resource_version == "43"


def test_delete_translates_not_found():
    client, resource = _make_client()
    resource.delete.side_effect = ApiException(status=404, reason="Not Found")

    with pytest.raises(ResourceNotFoundError):
        client.delete(_build_object())
