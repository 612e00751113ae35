"""Helpers for interacting with Kubernetes APIs."""

__all__ = (
    "create_k8sclient",
    "decode_secret_field",
    "get_configmap",
    "get_secret",
)

import base64
import json
from typing import Any

import kubernetes


def create_k8sclient() -> kubernetes.client:
    """Get a Kubernetes client configured with available cluster
    authentication.

    If in-cluster authentication is available, that is used. Otherwise
    this function falls-back to using a kubectl config file, which is
    appropriate for development.
    """
    try:
        kubernetes.config.load_incluster_config()
    except Exception:
        kubernetes.config.load_kube_config()
    kubernetes.client.configuration.assert_hostname = False
    return kubernetes.client


def get_secret(
    *,
    namespace: str,
    name: str,
    k8s_client: Any,
    raw: bool = True,
) -> dict[str, Any] | Any:
    """Get a Secret resource.

    Parameters
    ----------
    namespace : `str`
        The Kubernetes namespace of the Ceph cluster.
    name : `str`
        The name of the Secret.
    k8s_client
        A Kubernetes client (see `create_k8sclient`).
    raw : `bool`
        If `True`, the raw Kubernetes manifest is returned as a `dict`.
        Otherwise the Python object representation of the resource is returned.

    Returns
    -------
    secret
        The Kubernetes Secret resource either as a `dict` or an object.
    """
    preload_content = not raw

    api = k8s_client.CoreV1Api()
    result = api.read_namespaced_secret(
        name=name, namespace=namespace, _preload_content=preload_content
    )
    if raw:
        return json.loads(result.data)
    else:
        return result


def get_configmap(
    *,
    namespace: str,
    name: str,
    k8s_client: Any,
    raw: bool = True,
) -> dict[str, Any] | Any:
    """Get a ConfigMap resource.

    Parameters
    ----------
    namespace : `str`
        The Kubernetes namespace of the Ceph cluster.
    name : `str`
        The name of the ConfigMap.
    k8s_client
        A Kubernetes client (see `create_k8sclient`).
    raw : `bool`
        If `True`, the raw Kubernetes manifest is returned as a `dict`.
        Otherwise the Python object representation of the resource is returned.

    Returns
    -------
    configmap
        The Kubernetes ConfigMap resource either as a `dict` or an object.
    """
    preload_content = not raw

    api = k8s_client.CoreV1Api()
    result = api.read_namespaced_config_map(
        name=name, namespace=namespace, _preload_content=preload_content
    )
    if raw:
        return json.loads(result.data)
    else:
        return result


def decode_secret_field(value: str) -> str:
    """Decode a base64-encoded value from the ``data`` of a raw Secret."""
    return base64.b64decode(value).decode("utf-8")
