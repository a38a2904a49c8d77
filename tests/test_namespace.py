import pytest

from k8s_manifest.document import ResourceObject
from k8s_manifest.errors import MissingNamespaceError
from k8s_manifest.namespace import NamespacePolicy, apply_namespace, resolve_namespace


def test_permissive_defaults_to_default_namespace():
    assert resolve_namespace("", "") == "default"


def test_strict_requires_a_namespace():
    with pytest.raises(MissingNamespaceError):
        resolve_namespace("", None, NamespacePolicy.STRICT)


@pytest.mark.parametrize("policy", list(NamespacePolicy))
def test_parameter_used_when_document_has_none(policy):
    assert resolve_namespace("ns1", "", policy) == "ns1"


@pytest.mark.parametrize("policy", list(NamespacePolicy))
def test_document_namespace_wins(policy):
    assert resolve_namespace("ns1", "ns2", policy) == "ns2"


def test_apply_namespace_mutates_object():
    obj = ResourceObject({"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "cm"}})
    assert apply_namespace(obj, "team-a") == "team-a"
    assert obj.document["metadata"]["namespace"] == "team-a"
