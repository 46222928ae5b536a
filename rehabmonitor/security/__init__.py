"""Security package initialization.

The :mod:`rehabmonitor.security` package holds the AES‑GCM helpers and the
metrics encryption capabilities that produce a record's ``encryptedMetrics``
field.  The public API is intentionally minimal to keep the top‑level
namespace clean.
"""

from .crypto import (
    AesGcmMetricsEncryptor,
    MetricsEncryptor,
    SimulatedFHE,
    decrypt_data,
    encrypt_data,
    simulated_progress_score,
)
