"""Commit signers.

Any object with ``sign(payload: bytes) -> bytes`` satisfies the
:class:`~arbor.protocols.Signer` protocol.  :class:`GpgSigner` is the
stock implementation: it asks a GnuPG-compatible program for an
ASCII-armored detached signature, the way ``git commit -S`` does.
"""

from __future__ import annotations

import logging
import subprocess

from arbor.exceptions import SigningError

logger = logging.getLogger(__name__)


class GpgSigner:
    """Signs payloads with a GnuPG key.

    Args:
        key_id: Key to sign with (``--local-user``).  None uses the
            program's default key.
        program: GnuPG-compatible executable.
        timeout: Seconds to wait for the program.
    """

    def __init__(
        self,
        key_id: str | None = None,
        *,
        program: str = "gpg",
        timeout: float = 60.0,
    ) -> None:
        self.key_id = key_id
        self.program = program
        self.timeout = timeout

    def command(self) -> list[str]:
        cmd = [self.program, "--status-fd=2", "--batch", "--armor", "--detach-sign"]
        if self.key_id:
            cmd += ["--local-user", self.key_id]
        return cmd

    def sign(self, payload: bytes) -> bytes:
        """Return an armored detached signature over *payload*.

        Raises:
            SigningError: If the program is missing, fails, or produces
                no signature.
        """
        try:
            proc = subprocess.run(
                self.command(),
                input=payload,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise SigningError(f"signing program not found: {self.program}") from e
        except subprocess.TimeoutExpired as e:
            raise SigningError(f"{self.program} timed out after {self.timeout}s") from e

        if proc.returncode != 0:
            stderr = proc.stderr.decode("utf-8", errors="replace").strip()
            raise SigningError(f"{self.program} failed to sign the data: {stderr}")
        if not proc.stdout:
            raise SigningError(f"{self.program} produced no signature")

        logger.debug("Signed %d bytes with %s (key=%s)", len(payload), self.program, self.key_id)
        return proc.stdout

    def __repr__(self) -> str:
        return f"GpgSigner(key_id={self.key_id!r}, program={self.program!r})"
