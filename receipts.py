"""
receipts.py - Audit Trail for cube5d Runs

Every pipeline stage (integration, spectral_signature, route_selection,
resonance_proof, gate_decision, commit, pipeline_run) and every halting
stoprule (anomaly) records one receipt here. A run's receipts travel in
PipelineOutput.receipts and can be rolled up with merkle().

Receipt payloads are dual-hashed (SHA256:BLAKE3). The commit digest itself
is plain SHA-256 and lives in cube5d.commit, not here.
"""

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Union

import blake3

__all__ = [
    "dual_hash",
    "canonical_json",
    "emit_receipt",
    "write_receipt_jsonl",
    "StopRule",
    "merkle",
    "RECEIPT_SCHEMA",
    "DEFAULT_TENANT",
]

# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_TENANT = "cube5d"

RECEIPT_SCHEMA = {
    "receipt_type": "str",
    "ts": "ISO8601",
    "tenant_id": "str",
    "payload_hash": "str (SHA256:BLAKE3)",
}


# =============================================================================
# HASHING
# =============================================================================

def dual_hash(data: Union[bytes, str]) -> str:
    """
    SHA256:BLAKE3 digest pair used for receipt payloads and merkle nodes.

    Args:
        data: Bytes or string to hash

    Returns:
        str: "sha256_hex:blake3_hex" format
    """
    if isinstance(data, str):
        data = data.encode()
    sha = hashlib.sha256(data).hexdigest()
    b3 = blake3.blake3(data).hexdigest()
    return f"{sha}:{b3}"


def canonical_json(data: Any) -> str:
    """Deterministic JSON: sorted keys, no whitespace."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


# =============================================================================
# STAGE RECEIPTS
# =============================================================================

def emit_receipt(receipt_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build one stage receipt.

    The orchestrator stamps tenant_id from PipelineConfig; stoprules fall
    back to DEFAULT_TENANT. payload_hash covers the data only, so two runs
    with identical stage data differ in ts but not in payload_hash.

    Args:
        receipt_type: One of constants.RECEIPT_SCHEMA
        data: Stage fields, merged into the receipt

    Returns:
        dict: receipt_type, ts, tenant_id, payload_hash plus data
    """
    receipt = {
        "receipt_type": receipt_type,
        "ts": datetime.now(timezone.utc).isoformat(),
        "tenant_id": data.get("tenant_id", DEFAULT_TENANT),
        "payload_hash": dual_hash(json.dumps(data, sort_keys=True)),
        **data
    }
    return receipt


# =============================================================================
# PERSISTENCE
# =============================================================================

def write_receipt_jsonl(receipt: Dict[str, Any], fh) -> None:
    """Append one receipt as a compact JSON line (export.write_receipts, cli --receipts)."""
    line = json.dumps(receipt, separators=(",", ":"))
    fh.write(line + "\n")


# =============================================================================
# ROLL-UP
# =============================================================================

def merkle(items: List[Any]) -> str:
    """
    Merkle root over JSON-serializable items (a run's receipts, an
    ensemble's commit digests). Odd levels duplicate their last node.

    Returns:
        str: root in dual_hash format; dual_hash(b"empty") for no items
    """
    if not items:
        return dual_hash(b"empty")
    hashes = [dual_hash(json.dumps(i, sort_keys=True)) for i in items]
    while len(hashes) > 1:
        if len(hashes) % 2:
            hashes.append(hashes[-1])
        hashes = [dual_hash(hashes[i] + hashes[i + 1])
                  for i in range(0, len(hashes), 2)]
    return hashes[0]


# =============================================================================
# HALT
# =============================================================================

class StopRule(Exception):
    """Root of cube5d.errors.PipelineError. Raised by stoprules after the
    anomaly receipt is recorded."""
