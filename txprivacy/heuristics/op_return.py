"""H7: OP_RETURN Metadata.

OP_RETURN outputs embed data in the chain forever. Known protocol tags (Omni,
OpenTimestamps, Counterparty, VeriBlock, Runes) reveal what the transaction
was used for. Each OP_RETURN output produces its own finding and they stack.

Impact: -5 per output, -8 when a protocol is recognised
"""

from __future__ import annotations

import re

from txprivacy.heuristics._common import is_op_return
from txprivacy.models import Finding, FindingKind, HeuristicResult, Severity, Transaction

OP_RETURN = "6a"
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
MAX_DIRECT_PUSH = 0x4B

# Payload prefix (hex) -> protocol name
PROTOCOL_TAGS = (
    ("6f6d6e69", "Omni Layer"),  # "omni"
    ("4f545301", "OpenTimestamps"),  # "OTS\x01"
    ("434e545250525459", "Counterparty"),  # "CNTRPRTY"
    ("56424b", "VeriBlock"),  # "VBK"
)
RUNES_PREFIX = "6a5d"  # OP_RETURN OP_13

_PRINTABLE = re.compile(r"^[\x20-\x7e\n\r\t]+$")
MAX_TEXT_PREVIEW = 100


def extract_payload(scriptpubkey: str) -> str:
    """Return the pushed data (hex) following the OP_RETURN opcode."""
    if not scriptpubkey.startswith(OP_RETURN) or len(scriptpubkey) <= 2:
        return ""
    offset = 2
    try:
        push = int(scriptpubkey[offset : offset + 2], 16)
    except ValueError:
        return ""
    if push <= MAX_DIRECT_PUSH:
        offset += 2
    elif push == OP_PUSHDATA1:
        offset += 4
    elif push == OP_PUSHDATA2:
        offset += 6
    return scriptpubkey[offset:]


def decode_text(payload: str) -> str | None:
    """Decode the payload as text when every byte is printable ASCII."""
    if len(payload) < 2:
        return None
    try:
        text = bytes.fromhex(payload).decode("ascii")
    except ValueError:
        return None
    return text if _PRINTABLE.match(text) else None


def detect_protocol(scriptpubkey: str, payload: str) -> str | None:
    if scriptpubkey.startswith(RUNES_PREFIX):
        return "Runes"
    for prefix, name in PROTOCOL_TAGS:
        if payload.startswith(prefix):
            return name
    return None


def analyze_op_return(tx: Transaction, raw_hex: str | None = None) -> HeuristicResult:
    result = HeuristicResult()
    data_outputs = [out for out in tx.vout if is_op_return(out)]
    stacked = len(data_outputs) > 1

    for idx, out in enumerate(data_outputs):
        payload = extract_payload(out.scriptpubkey)
        protocol = detect_protocol(out.scriptpubkey, payload)
        text = decode_text(payload)

        description = (
            "This transaction embeds data in the blockchain through OP_RETURN. "
            "The data is public and permanent."
        )
        if protocol:
            description += f" Detected protocol: {protocol}."
        if text:
            preview = text if len(text) <= MAX_TEXT_PREVIEW else text[:MAX_TEXT_PREVIEW] + "..."
            description += f' Decoded text: "{preview}".'

        params: dict = {}
        if protocol:
            params["protocol"] = protocol
        if text:
            params["text"] = text[:MAX_TEXT_PREVIEW]

        result.findings.append(
            Finding(
                kind=FindingKind.OP_RETURN,
                index=idx if stacked else None,
                severity=Severity.MEDIUM if protocol else Severity.LOW,
                title=(
                    f"OP_RETURN: {protocol} data embedded"
                    if protocol
                    else "OP_RETURN data embedded in transaction"
                ),
                description=description,
                recommendation=(
                    "Avoid services that attach metadata to your transactions "
                    "when privacy matters."
                ),
                score_impact=-8 if protocol else -5,
                params=params,
            )
        )
    return result
