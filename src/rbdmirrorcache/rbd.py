"""Querying ``rbd mirror pool status`` through the ``rbd`` command-line tool."""

__all__ = (
    "StatusFetcher",
    "build_command",
    "decode_mirror_status",
    "redact_command",
)

import subprocess
from typing import Any

import structlog
from pydantic import ValidationError

from rbdmirrorcache.exceptions import (
    CommandExecutionError,
    IncompleteCredentialsError,
    ResponseParseError,
)
from rbdmirrorcache.types import CredentialInput, MirrorStatus


def build_command(
    pool_name: str, credentials: CredentialInput, command: str = "rbd"
) -> list[str]:
    """Build the argument vector for ``rbd mirror pool status``."""
    return [
        command,
        "mirror",
        "pool",
        "status",
        pool_name,
        "--verbose",
        "--format",
        "json",
        "-m",
        credentials.monitor,
        "--id",
        credentials.id,
        "--key",
        credentials.key,
        "--debug-rbd",
        "0",
    ]


def redact_command(args: list[str]) -> str:
    """Render a command line for logging with the ``--key`` value hidden."""
    redacted = list(args)
    for i, arg in enumerate(redacted[:-1]):
        if arg == "--key":
            redacted[i + 1] = "<redacted>"
    return " ".join(redacted)


def decode_mirror_status(pool_name: str, output: bytes | str) -> MirrorStatus:
    """Parse the JSON output of ``rbd mirror pool status --verbose``.

    Raises
    ------
    rbdmirrorcache.exceptions.ResponseParseError
        Raised if the output is not JSON or does not match `MirrorStatus`.
    """
    try:
        return MirrorStatus.model_validate_json(output)
    except ValidationError as e:
        raise ResponseParseError(
            pool_name, f"{e.error_count()} validation error(s)"
        ) from e


class StatusFetcher:
    """Run ``rbd`` to get the verbose mirror status of a pool.

    Each `fetch` spawns exactly one ``rbd`` process and blocks until it
    exits. There is no retry.

    Parameters
    ----------
    command : `str`
        The ``rbd`` executable.
    timeout : `float`, optional
        Seconds to wait for ``rbd`` before killing it. `None` waits
        indefinitely.
    logger : `logging.Logger`, optional
        Logger to use for logging messages.
    """

    def __init__(
        self,
        command: str = "rbd",
        timeout: float | None = None,
        logger: Any | None = None,
    ) -> None:
        self.command = command
        self.timeout = timeout
        self.logger = logger or structlog.getLogger(__name__)

    def fetch(self, pool_name: str, credentials: CredentialInput) -> MirrorStatus:
        """Get the mirror status of a pool.

        Parameters
        ----------
        pool_name : `str`
            The name of the Ceph pool.
        credentials : `rbdmirrorcache.types.CredentialInput`
            The credentials for the pool's cluster.

        Raises
        ------
        rbdmirrorcache.exceptions.StatusFetchError
            Raised if the credentials are empty, ``rbd`` fails, or its
            output cannot be parsed.
        """
        if credentials.is_empty():
            raise IncompleteCredentialsError(pool_name)

        args = build_command(pool_name, credentials, command=self.command)
        output = self.execute(pool_name, args)
        return decode_mirror_status(pool_name, output)

    def execute(self, pool_name: str, args: list[str]) -> bytes:
        """Run a command and return its combined stdout and stderr.

        Raises
        ------
        rbdmirrorcache.exceptions.CommandExecutionError
            Raised if the command cannot be started, times out or exits with
            a non-zero status.
        """
        try:
            result = subprocess.run(
                args=args,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            self._log_failure(args, e.returncode, e.output)
            raise CommandExecutionError(
                pool_name,
                f"exit status {e.returncode}",
                returncode=e.returncode,
                output=e.output or b"",
            ) from e
        except subprocess.TimeoutExpired as e:
            self._log_failure(args, None, e.output)
            raise CommandExecutionError(
                pool_name,
                f"timed out after {self.timeout} seconds",
                output=e.output or b"",
            ) from e
        except OSError as e:
            raise CommandExecutionError(pool_name, str(e)) from e
        return result.stdout

    def _log_failure(
        self, args: list[str], returncode: int | None, output: bytes | None
    ) -> None:
        self.logger.debug(f"rbd status: {returncode}")
        self.logger.debug(f"rbd args: {redact_command(args)}")
        if output:
            self.logger.debug(
                f"rbd output:\n{output.decode('utf-8', errors='replace')}"
            )
