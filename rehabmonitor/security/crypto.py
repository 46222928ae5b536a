"""
security.crypto
~~~~~~~~~~~~~~~

Encryption capabilities used when a rehabilitation session is stored.

Two concerns live here:

* :func:`encrypt_data` / :func:`decrypt_data` are AES‑GCM helpers built on the
  ``cryptography`` package.  The SQLite ledger gateway uses them to encrypt
  values at rest.
* :class:`MetricsEncryptor` implementations turn the raw session metrics into
  the opaque ``encryptedMetrics`` string of a record envelope.
  :class:`SimulatedFHE` is the placeholder for the homomorphic-encryption
  service; :class:`AesGcmMetricsEncryptor` is a real cipher behind the same
  interface.  The record index and codec never look inside the result.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
import secrets
from typing import Callable, Optional, Protocol, Tuple, runtime_checkable

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..config import settings


# --------------------------------------------------------------------------- #
# Helper Functions
# --------------------------------------------------------------------------- #

def _generate_random_bytes(n: int) -> bytes:
    """Return ``n`` cryptographically‑secure random bytes."""
    return os.urandom(n)


def load_master_key() -> bytes:
    """
    Retrieve the master key from the environment.

    Raises :class:`RuntimeError` if the variable is unset or is not a
    hex encoded key of :data:`settings.AES_GCM_KEY_SIZE` bytes.
    """
    key = os.getenv(settings.MASTER_KEY_ENV_VAR)
    if key is None:
        raise RuntimeError(
            f"{settings.MASTER_KEY_ENV_VAR} must be set before using crypto functions."
        )
    try:
        raw = bytes.fromhex(key)
    except ValueError as exc:
        raise RuntimeError(f"{settings.MASTER_KEY_ENV_VAR} is not valid hex") from exc
    if len(raw) != settings.AES_GCM_KEY_SIZE:
        raise RuntimeError(
            f"{settings.MASTER_KEY_ENV_VAR} must hold {settings.AES_GCM_KEY_SIZE} bytes"
        )
    return raw


# --------------------------------------------------------------------------- #
# AES-GCM
# --------------------------------------------------------------------------- #

def encrypt_data(
    plaintext: bytes, key: bytes, nonce: bytes | None = None
) -> Tuple[bytes, bytes]:
    """
    Encrypt ``plaintext`` using AES‑GCM.

    Parameters
    ----------
    plaintext : bytes
        The data to encrypt.
    key : bytes
        A 256‑bit key, usually from :func:`load_master_key`.
    nonce : bytes | None
        Optional 12‑byte nonce.  If omitted a random nonce is generated.

    Returns
    -------
    Tuple[bytes, bytes]
        ``(ciphertext, nonce)`` – both are opaque byte strings.
    """
    if nonce is None:
        nonce = _generate_random_bytes(settings.AES_GCM_NONCE_SIZE)
    ciphertext = AESGCM(key).encrypt(nonce, plaintext, None)
    return ciphertext, nonce


def decrypt_data(ciphertext: bytes, nonce: bytes, key: bytes) -> bytes:
    """
    Decrypt ``ciphertext`` using AES‑GCM.

    Raises :class:`cryptography.exceptions.InvalidTag` when the payload or
    key does not authenticate.
    """
    return AESGCM(key).decrypt(nonce, ciphertext, None)


def seal(plaintext: bytes, key: bytes) -> bytes:
    """Encrypt ``plaintext`` and prepend the nonce, giving one storable blob."""
    ciphertext, nonce = encrypt_data(plaintext, key)
    return nonce + ciphertext


def unseal(blob: bytes, key: bytes) -> bytes:
    """Inverse of :func:`seal`."""
    nonce, ciphertext = blob[: settings.AES_GCM_NONCE_SIZE], blob[settings.AES_GCM_NONCE_SIZE:]
    return decrypt_data(ciphertext, nonce, key)


# --------------------------------------------------------------------------- #
# Metrics encryption
# --------------------------------------------------------------------------- #

@runtime_checkable
class MetricsEncryptor(Protocol):
    """Produces the opaque ``encryptedMetrics`` field of a record."""

    def encrypt(self, metrics: str, intensity: str, duration: int) -> str:
        ...


class SimulatedFHE:
    """
    Placeholder for the homomorphic‑encryption service.

    The output is ``"FHE-"`` followed by base64 of a JSON object holding
    the metrics, intensity and duration.  It is a reversible encoding, not
    encryption, and exists so the rest of the pipeline can run before a
    real FHE backend is wired in.
    """

    prefix = settings.ENCRYPTED_METRICS_PREFIX

    def encrypt(self, metrics: str, intensity: str, duration: int) -> str:
        payload = json.dumps(
            {"metrics": metrics, "intensity": intensity, "duration": duration},
            separators=(",", ":"),
        )
        return self.prefix + base64.b64encode(payload.encode("utf-8")).decode("ascii")

    def reveal(self, blob: str) -> dict:
        """Decode a blob produced by :meth:`encrypt`."""
        if not blob.startswith(self.prefix):
            raise ValueError("not a simulated FHE payload")
        try:
            raw = base64.b64decode(blob[len(self.prefix):], validate=True)
        except binascii.Error as exc:
            raise ValueError("simulated FHE payload is not base64") from exc
        return json.loads(raw.decode("utf-8"))


class AesGcmMetricsEncryptor:
    """Encrypts metrics with AES‑GCM under the configured master key."""

    prefix = "AESGCM-"

    def __init__(self, key: bytes | None = None) -> None:
        self._key = key if key is not None else load_master_key()

    def encrypt(self, metrics: str, intensity: str, duration: int) -> str:
        payload = json.dumps(
            {"metrics": metrics, "intensity": intensity, "duration": duration},
            separators=(",", ":"),
        ).encode("utf-8")
        return self.prefix + base64.b64encode(seal(payload, self._key)).decode("ascii")

    def decrypt(self, blob: str) -> dict:
        if not blob.startswith(self.prefix):
            raise ValueError("not an AES-GCM metrics payload")
        sealed = base64.b64decode(blob[len(self.prefix):])
        return json.loads(unseal(sealed, self._key).decode("utf-8"))


# --------------------------------------------------------------------------- #
# Progress score
# --------------------------------------------------------------------------- #

ProgressScorer = Callable[[], int]


def simulated_progress_score(rng: Optional[secrets.SystemRandom] = None) -> int:
    """
    Placeholder for the progress score an FHE evaluation would compute.

    Returns an integer in ``[0, MAX_PROGRESS_SCORE)``.
    """
    rng = rng or secrets.SystemRandom()
    return rng.randrange(settings.MAX_PROGRESS_SCORE)
