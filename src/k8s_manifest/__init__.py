"""Apply single Kubernetes manifests and wait for them to converge."""

from .config import ClusterContext, ManifestConfig, ReconcilerSettings  # noqa: F401
from .kube import KubernetesClusterClient  # noqa: F401
from .reconciler import Reconciler, ReconcileResult  # noqa: F401

__all__ = [
    "ClusterContext",
    "ManifestConfig",
    "ReconcilerSettings",
    "KubernetesClusterClient",
    "Reconciler",
    "ReconcileResult",
]
