"""
Executor Module - Black Box Interface

Purpose: Run commands inside pod containers through the kubectl CLI
Interface: KubectlGateway.exec(), KubectlGateway.write_file()
Hidden: kubeconfig discovery, process management, timeouts, output limits

Can be replaced with a different transport (Kubernetes API exec streams)
without touching the filesystem module.
"""

from .credentials import KubectlEnvironment, build_kubectl_env, find_proxy_kubeconfig
from .kubectl import (
    CompletionLatch,
    KubectlCommandError,
    KubectlError,
    KubectlGateway,
    KubectlOutputLimitError,
    KubectlSpawnError,
    KubectlTimeoutError,
    PodTarget,
    UploadTimeoutError,
)

__all__ = [
    "CompletionLatch",
    "KubectlCommandError",
    "KubectlEnvironment",
    "KubectlError",
    "KubectlGateway",
    "KubectlOutputLimitError",
    "KubectlSpawnError",
    "KubectlTimeoutError",
    "PodTarget",
    "UploadTimeoutError",
    "build_kubectl_env",
    "find_proxy_kubeconfig",
]
