"""
Credential discovery for kubectl invocations.

Desktop cluster managers write a short-lived proxy kubeconfig per cluster
into the shared temp directory. Finding it lets kubectl reach the cluster
through the same authenticated proxy the host application uses. The lookup
is best-effort: a miss simply means kubectl falls back to its own config.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Dict, Optional

logger = logging.getLogger("podfs.executor.credentials")

KUBECONFIG_PREFIX = "kubeconfig-"


def find_proxy_kubeconfig(cluster_id: str, temp_dir: Optional[str] = None) -> Optional[str]:
    """
    Find the proxy kubeconfig written for a cluster.

    Args:
        cluster_id: Cluster identifier
        temp_dir: Directory to search (defaults to the platform temp dir)

    Returns:
        Path to the kubeconfig, or None if not found

    Logic:
    1. Empty cluster id never matches
    2. Try <temp>/kubeconfig-<cluster_id> directly
    3. Otherwise scan temp for kubeconfig-* names containing the cluster id
    """
    if not cluster_id:
        return None

    temp_dir = temp_dir or tempfile.gettempdir()
    direct_path = os.path.join(temp_dir, f"{KUBECONFIG_PREFIX}{cluster_id}")

    if os.path.exists(direct_path):
        return direct_path

    try:
        names = os.listdir(temp_dir)
    except OSError as e:
        logger.debug(f"Could not scan {temp_dir} for kubeconfig: {e}")
        return None

    for name in names:
        if name.startswith(KUBECONFIG_PREFIX) and cluster_id in name:
            full_path = os.path.join(temp_dir, name)
            if os.path.exists(full_path):
                return full_path

    return None


@dataclass
class KubectlEnvironment:
    """Process environment for one kubectl invocation."""

    env: Dict[str, str]
    kubeconfig: Optional[str] = None

    def kubeconfig_args(self) -> list:
        """Explicit --kubeconfig flag; kubectl does not honor the env var in every mode."""
        if self.kubeconfig:
            return ["--kubeconfig", self.kubeconfig]
        return []


def build_kubectl_env(
    cluster_id: str,
    temp_dir: Optional[str] = None,
    kubeconfig_env: str = "KUBECONFIG",
) -> KubectlEnvironment:
    """
    Compose the environment for a kubectl child process.

    Inherits the current process environment and points the kubeconfig
    variable at the proxy kubeconfig only when one was found.
    """
    kubeconfig = find_proxy_kubeconfig(cluster_id, temp_dir)
    env = dict(os.environ)

    if kubeconfig:
        env[kubeconfig_env] = kubeconfig
    else:
        logger.debug(f"No proxy kubeconfig for cluster {cluster_id!r}, using default kubectl config")

    return KubectlEnvironment(env=env, kubeconfig=kubeconfig)
