"""Configuration models and helpers for manifest reconciliation."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from .annotator import LAST_APPLIED_ANNOTATION
from .namespace import NamespacePolicy


class ClusterContext(BaseModel):
    """Connection context to interact with a Kubernetes cluster."""

    kubeconfig: Optional[str] = None
    context: Optional[str] = None
    verify_ssl: bool = True
    field_manager: str = Field(default="k8s-manifest")


class ReconcilerSettings(BaseModel):
    """Knobs controlling how manifests are applied and waited on."""

    namespace_policy: NamespacePolicy = NamespacePolicy.PERMISSIVE
    wait_for_ready: bool = True
    annotate_last_applied: bool = False
    last_applied_annotation: str = LAST_APPLIED_ANNOTATION
    create_timeout: float = Field(default=1200.0, gt=0)
    update_timeout: float = Field(default=1200.0, gt=0)
    delete_timeout: float = Field(default=1200.0, gt=0)
    poll_delay: float = Field(default=5.0, ge=0)
    min_poll_interval: float = Field(default=5.0, ge=0)
    continuous_target_occurrence: int = Field(default=1, ge=1)


class ManifestConfig(BaseModel):
    """Top-level configuration file contents."""

    context: ClusterContext = Field(default_factory=ClusterContext)
    settings: ReconcilerSettings = Field(default_factory=ReconcilerSettings)

    @classmethod
    def from_file(cls, path: str | Path) -> "ManifestConfig":
        document_path = Path(path)
        data = yaml.safe_load(document_path.read_text())
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("Configuration file must contain a mapping at the top level.")
        return cls.model_validate(data)
