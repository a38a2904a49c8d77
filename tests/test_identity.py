import pytest

from k8s_manifest.document import ResourceObject
from k8s_manifest.errors import InvalidIdentifierError
from k8s_manifest.identity import GroupVersion, ResourceIdentity, parse_group_version


@pytest.mark.parametrize(
    "identity",
    [
        ResourceIdentity("default", "v1", "ConfigMap", "settings"),
        ResourceIdentity("shop", "apps/v1", "Deployment", "web"),
        ResourceIdentity("", "rbac.authorization.k8s.io/v1", "ClusterRole", "viewer"),
    ],
)
def test_identifier_round_trip(identity):
    assert ResourceIdentity.decode(identity.encode()) == identity


def test_identifier_format():
    identity = ResourceIdentity("shop", "apps/v1", "Deployment", "web")
    assert identity.encode() == "shop::apps/v1::Deployment::web"


@pytest.mark.parametrize("identifier", ["shop::apps/v1::Deployment", "a::b::c::d::e", ""])
def test_decode_rejects_wrong_number_of_parts(identifier):
    with pytest.raises(InvalidIdentifierError):
        ResourceIdentity.decode(identifier)


def test_decode_rejects_bad_group_version():
    with pytest.raises(InvalidIdentifierError):
        ResourceIdentity.decode("shop::a/b/c::Deployment::web")


def test_parse_group_version():
    assert parse_group_version("v1") == GroupVersion("", "v1")
    assert parse_group_version("apps/v1") == GroupVersion("apps", "v1")
    assert str(parse_group_version("apps/v1")) == "apps/v1"
    assert str(parse_group_version("v1")) == "v1"


def test_empty_object_from_identity():
    obj = ResourceIdentity("shop", "apps/v1", "Deployment", "web").empty_object()
    assert obj.document == {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": "web", "namespace": "shop"},
    }


def test_from_object_rejects_separator_in_name():
    obj = ResourceObject({"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "a::b"}})
    with pytest.raises(InvalidIdentifierError):
        ResourceIdentity.from_object(obj)
