from __future__ import annotations

import os

import pytest
from cryptography.exceptions import InvalidTag

from rehabmonitor.security import AesGcmMetricsEncryptor, SimulatedFHE, decrypt_data, encrypt_data
from rehabmonitor.security.crypto import load_master_key, seal, simulated_progress_score, unseal

KEY = bytes(range(32))


def test_aes_gcm_round_trip() -> None:
    ciphertext, nonce = encrypt_data(b"range of motion 110", KEY)
    assert len(nonce) == 12
    assert decrypt_data(ciphertext, nonce, KEY) == b"range of motion 110"


def test_tampered_ciphertext_rejected() -> None:
    blob = bytearray(seal(b"payload", KEY))
    blob[-1] ^= 1
    with pytest.raises(InvalidTag):
        unseal(bytes(blob), KEY)


def test_master_key_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REHABMONITOR_MASTER_KEY", KEY.hex())
    assert load_master_key() == KEY
    monkeypatch.setenv("REHABMONITOR_MASTER_KEY", "abcd")
    with pytest.raises(RuntimeError):
        load_master_key()
    monkeypatch.delenv("REHABMONITOR_MASTER_KEY")
    with pytest.raises(RuntimeError):
        load_master_key()


def test_simulated_fhe_is_prefixed_and_reversible() -> None:
    fhe = SimulatedFHE()
    blob = fhe.encrypt("hip 40deg", "medium", 12)
    assert blob.startswith("FHE-")
    assert fhe.reveal(blob) == {"metrics": "hip 40deg", "intensity": "medium", "duration": 12}
    with pytest.raises(ValueError):
        fhe.reveal("plain")


def test_aes_gcm_metrics_encryptor(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REHABMONITOR_MASTER_KEY", os.urandom(32).hex())
    enc = AesGcmMetricsEncryptor()
    blob = enc.encrypt("grip 22kg", "high", 5)
    assert blob.startswith("AESGCM-")
    assert "grip" not in blob
    assert enc.decrypt(blob)["metrics"] == "grip 22kg"


def test_progress_score_range() -> None:
    assert all(0 <= simulated_progress_score() < 100 for _ in range(200))
