"""Resolution of the credentials ``rbd`` needs to reach a Ceph cluster."""

__all__ = (
    "CLIENT_ID",
    "CLUSTER_CONFIG_KEY",
    "CSI_CONFIGMAP_NAME",
    "MON_SECRET_KEY",
    "MON_SECRET_NAME",
    "CredentialResolver",
)

import binascii
import threading
from collections.abc import Iterable
from typing import Any

import structlog
from kubernetes.client.exceptions import ApiException

from rbdmirrorcache.exceptions import (
    ConfigFieldMissingError,
    ConfigLookupError,
    ConfigParseError,
    CredentialError,
    NoClusterConfigError,
    NoMonitorsError,
    NotAllowedNamespaceError,
    SecretFieldMissingError,
    SecretLookupError,
)
from rbdmirrorcache.k8s import decode_secret_field, get_configmap, get_secret
from rbdmirrorcache.types import CredentialInput, parse_cluster_configs

MON_SECRET_NAME = "rook-ceph-mon"
MON_SECRET_KEY = "ceph-secret"
CSI_CONFIGMAP_NAME = "rook-ceph-csi-config"
CLUSTER_CONFIG_KEY = "csi-cluster-config-json"
CLIENT_ID = "admin"


class CredentialResolver:
    """Resolve and cache the `CredentialInput` for each namespace.

    Resolved credentials are kept until `invalidate` is called or a
    ``refresh`` is requested; rotating the Rook secret does not evict them.
    Failed resolutions are not cached.

    Parameters
    ----------
    allowed_namespaces : iterable of `str`
        The only namespaces for which credentials may be resolved.
    k8s_client
        A Kubernetes client (see `rbdmirrorcache.k8s.create_k8sclient`).
    logger : `logging.Logger`, optional
        Logger to use for logging messages.
    """

    def __init__(
        self,
        allowed_namespaces: Iterable[str],
        k8s_client: Any,
        logger: Any | None = None,
    ) -> None:
        self.allowed_namespaces = frozenset(allowed_namespaces)
        self.k8s_client = k8s_client
        self.logger = logger or structlog.getLogger(__name__)
        self._credentials: dict[str, CredentialInput] = {}
        self._lock = threading.Lock()

    def is_allowed(self, namespace: str) -> bool:
        return namespace in self.allowed_namespaces

    def resolve(self, namespace: str, refresh: bool = False) -> CredentialInput:
        """Get the credentials for a namespace.

        Parameters
        ----------
        namespace : `str`
            The namespace of the Rook Ceph cluster.
        refresh : `bool`
            If `True`, look the credentials up again even when they are
            already cached.

        Returns
        -------
        `rbdmirrorcache.types.CredentialInput`
            The monitor address, client ID and key for ``rbd``.

        Raises
        ------
        rbdmirrorcache.exceptions.CredentialError
            Raised if the namespace is not allowed or the Rook secret or
            CSI configmap is missing or malformed.
        """
        if not self.is_allowed(namespace):
            raise NotAllowedNamespaceError(namespace)

        if not refresh:
            with self._lock:
                cached = self._credentials.get(namespace)
            if cached is not None:
                return cached

        try:
            credentials = self._lookup(namespace)
        except CredentialError as e:
            self.logger.error(f"Failed to resolve rbd credentials: {e}")
            raise

        with self._lock:
            self._credentials[namespace] = credentials
        self.logger.info(
            f"Resolved rbd credentials for namespace {namespace} "
            f"(monitor {credentials.monitor})"
        )
        return credentials

    def invalidate(self, namespace: str | None = None) -> None:
        """Forget cached credentials for one namespace, or for all of them."""
        with self._lock:
            if namespace is None:
                self._credentials.clear()
            else:
                self._credentials.pop(namespace, None)

    def _lookup(self, namespace: str) -> CredentialInput:
        key = self._read_key(namespace)
        monitor = self._read_monitor(namespace)
        return CredentialInput(monitor=monitor, id=CLIENT_ID, key=key)

    def _read_key(self, namespace: str) -> str:
        try:
            secret = get_secret(
                namespace=namespace,
                name=MON_SECRET_NAME,
                k8s_client=self.k8s_client,
            )
        except ApiException as e:
            raise SecretLookupError(
                namespace, MON_SECRET_NAME, f"{e.status} {e.reason}"
            ) from e

        value = (secret.get("data") or {}).get(MON_SECRET_KEY)
        if value is None:
            raise SecretFieldMissingError(
                namespace, MON_SECRET_NAME, MON_SECRET_KEY
            )
        try:
            return decode_secret_field(value)
        except (binascii.Error, UnicodeDecodeError) as e:
            raise SecretLookupError(
                namespace, MON_SECRET_NAME, f"undecodable {MON_SECRET_KEY}"
            ) from e

    def _read_monitor(self, namespace: str) -> str:
        try:
            configmap = get_configmap(
                namespace=namespace,
                name=CSI_CONFIGMAP_NAME,
                k8s_client=self.k8s_client,
            )
        except ApiException as e:
            raise ConfigLookupError(
                namespace, CSI_CONFIGMAP_NAME, f"{e.status} {e.reason}"
            ) from e

        data = (configmap.get("data") or {}).get(CLUSTER_CONFIG_KEY)
        if data is None:
            raise ConfigFieldMissingError(
                namespace, CSI_CONFIGMAP_NAME, CLUSTER_CONFIG_KEY
            )

        # ValidationError and JSONDecodeError are both ValueErrors
        try:
            cluster_configs = parse_cluster_configs(data)
        except ValueError as e:
            raise ConfigParseError(namespace, CLUSTER_CONFIG_KEY, str(e)) from e

        if not cluster_configs:
            raise NoClusterConfigError(namespace)
        if not cluster_configs[0].monitors:
            raise NoMonitorsError(namespace)
        return cluster_configs[0].monitors[0]
