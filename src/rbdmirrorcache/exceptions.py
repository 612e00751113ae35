"""Exceptions raised by the rbd mirror cache."""

__all__ = (
    "BootstrapFatalError",
    "CommandExecutionError",
    "ConfigFieldMissingError",
    "ConfigLookupError",
    "ConfigParseError",
    "CredentialError",
    "IncompleteCredentialsError",
    "MirrorCacheError",
    "NoClusterConfigError",
    "NoMonitorsError",
    "NotAllowedNamespaceError",
    "ResponseParseError",
    "SecretFieldMissingError",
    "SecretLookupError",
    "StatusFetchError",
    "TypeMismatchError",
)


class MirrorCacheError(Exception):
    """Base class for errors raised by the rbd mirror cache."""


class BootstrapFatalError(MirrorCacheError):
    """Raised when the local Ceph configuration files cannot be created.

    Attributes
    ----------
    path : `str`
        The file or directory that could not be created.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to initialize Ceph config at {path}: {reason}")


class TypeMismatchError(MirrorCacheError):
    """Raised when an event object is not a CephBlockPool resource."""

    def __init__(self, obj: object, reason: str) -> None:
        self.obj = obj
        super().__init__(
            f"Unexpected object of type {type(obj).__name__}: {reason}"
        )


class CredentialError(MirrorCacheError):
    """Base class for failures resolving rbd credentials for a namespace.

    Attributes
    ----------
    namespace : `str`
        The namespace whose credentials could not be resolved.
    """

    def __init__(self, namespace: str, message: str) -> None:
        self.namespace = namespace
        super().__init__(message)


class NotAllowedNamespaceError(CredentialError):
    def __init__(self, namespace: str) -> None:
        super().__init__(
            namespace,
            f"rbd-mirror status collection from namespace {namespace!r} is "
            "not allowed",
        )


class SecretLookupError(CredentialError):
    def __init__(self, namespace: str, name: str, reason: str) -> None:
        self.name = name
        super().__init__(
            namespace,
            f"Failed to get secret {name} in namespace {namespace!r}: {reason}",
        )


class SecretFieldMissingError(CredentialError):
    def __init__(self, namespace: str, name: str, key: str) -> None:
        self.name = name
        self.key = key
        super().__init__(
            namespace,
            f"Secret {name} in namespace {namespace!r} has no {key} field",
        )


class ConfigLookupError(CredentialError):
    def __init__(self, namespace: str, name: str, reason: str) -> None:
        self.name = name
        super().__init__(
            namespace,
            f"Failed to get configmap {name} in namespace {namespace!r}: "
            f"{reason}",
        )


class ConfigFieldMissingError(CredentialError):
    def __init__(self, namespace: str, name: str, key: str) -> None:
        self.name = name
        self.key = key
        super().__init__(
            namespace,
            f"ConfigMap {name} in namespace {namespace!r} has no {key} field",
        )


class ConfigParseError(CredentialError):
    def __init__(self, namespace: str, key: str, reason: str) -> None:
        self.key = key
        super().__init__(
            namespace,
            f"Failed to decode {key} in namespace {namespace!r}: {reason}",
        )


class NoClusterConfigError(CredentialError):
    def __init__(self, namespace: str) -> None:
        super().__init__(
            namespace,
            "Expected 1 or more CSI cluster configs but found 0 in namespace "
            f"{namespace!r}",
        )


class NoMonitorsError(CredentialError):
    def __init__(self, namespace: str) -> None:
        super().__init__(
            namespace,
            "Expected 1 or more monitors but found 0 in the CSI cluster "
            f"config of namespace {namespace!r}",
        )


class StatusFetchError(MirrorCacheError):
    """Base class for failures fetching ``rbd mirror pool status``.

    Attributes
    ----------
    pool : `str`
        The name of the pool being queried.
    """

    def __init__(self, pool: str, message: str) -> None:
        self.pool = pool
        super().__init__(message)


class IncompleteCredentialsError(StatusFetchError):
    def __init__(self, pool: str) -> None:
        super().__init__(
            pool,
            f"Unable to get rbd mirror status for pool {pool}: rbd command "
            "input not specified",
        )


class CommandExecutionError(StatusFetchError):
    """Raised when the ``rbd`` command cannot be spawned or fails.

    Attributes
    ----------
    returncode : `int` or `None`
        The exit status, or `None` if the process never completed.
    output : `bytes`
        The combined stdout and stderr captured from the command.
    """

    def __init__(
        self,
        pool: str,
        reason: str,
        *,
        returncode: int | None = None,
        output: bytes = b"",
    ) -> None:
        self.returncode = returncode
        self.output = output
        super().__init__(pool, f"rbd command error for pool {pool}: {reason}")


class ResponseParseError(StatusFetchError):
    def __init__(self, pool: str, reason: str) -> None:
        super().__init__(
            pool, f"Failed to parse rbd mirror status for pool {pool}: {reason}"
        )
