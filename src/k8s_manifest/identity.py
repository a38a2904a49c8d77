"""Stable identifiers for resources created from manifests."""
from __future__ import annotations

from dataclasses import dataclass

from .document import ResourceObject
from .errors import InvalidIdentifierError

ID_SEPARATOR = "::"


@dataclass(frozen=True)
class GroupVersion:
    """API group and version, as found in ``apiVersion``."""

    group: str
    version: str

    def __str__(self) -> str:
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"


def parse_group_version(value: str) -> GroupVersion:
    """Split an ``apiVersion`` string such as ``apps/v1`` or ``v1``."""

    if not value or value == "/":
        return GroupVersion(group="", version="")
    slashes = value.count("/")
    if slashes == 0:
        return GroupVersion(group="", version=value)
    if slashes == 1:
        group, version = value.split("/")
        return GroupVersion(group=group, version=version)
    raise InvalidIdentifierError(f"Unexpected GroupVersion string: {value}")


@dataclass(frozen=True)
class ResourceIdentity:
    """Everything needed to find a resource again without its manifest."""

    namespace: str
    group_version: str
    kind: str
    name: str

    @classmethod
    def from_object(cls, obj: ResourceObject) -> "ResourceIdentity":
        identity = cls(
            namespace=obj.namespace,
            group_version=obj.api_version,
            kind=obj.kind,
            name=obj.name,
        )
        for value in (identity.namespace, identity.group_version, identity.kind, identity.name):
            if ID_SEPARATOR in value:
                raise InvalidIdentifierError(f"{value!r} cannot be part of an ID, it contains {ID_SEPARATOR!r}")
        parse_group_version(identity.group_version)
        return identity

    def encode(self) -> str:
        return ID_SEPARATOR.join([self.namespace, self.group_version, self.kind, self.name])

    @classmethod
    def decode(cls, identifier: str) -> "ResourceIdentity":
        parts = identifier.split(ID_SEPARATOR)
        if len(parts) != 4:
            raise InvalidIdentifierError(
                f"Unexpected ID format ({identifier!r}), expected "
                f"namespace{ID_SEPARATOR}groupVersion{ID_SEPARATOR}kind{ID_SEPARATOR}name"
            )
        namespace, group_version, kind, name = parts
        parse_group_version(group_version)
        return cls(namespace=namespace, group_version=group_version, kind=kind, name=name)

    @property
    def parsed_group_version(self) -> GroupVersion:
        return parse_group_version(self.group_version)

    def empty_object(self) -> ResourceObject:
        """Build a bare object of the right kind, ready to be filled by a read."""

        metadata = {"name": self.name}
        if self.namespace:
            metadata["namespace"] = self.namespace
        return ResourceObject(
            {
                "apiVersion": str(self.parsed_group_version),
                "kind": self.kind,
                "metadata": metadata,
            }
        )

    def describe(self) -> str:
        return f"{self.kind}/{self.name} ({self.encode()})"

    def __str__(self) -> str:
        return self.encode()
