"""Helpers shared by the ecosystem clients."""

import json
from importlib import resources
from typing import Any, Dict, List, Mapping

from eth_utils import collapse_if_tuple

ABI_PACKAGE = "flare_fdc_client.abis"


def load_abi(contract_name: str) -> List[Dict[str, Any]]:
    """
    Load a contract ABI bundled with the package.

    Args:
        contract_name: File name of the ABI without the ``.json`` suffix.

    Returns:
        The ABI as a list of entries.

    Raises:
        FileNotFoundError: If no ABI with that name is bundled.
    """
    abi_file = resources.files(ABI_PACKAGE).joinpath(f"{contract_name}.json")
    if not abi_file.is_file():
        raise FileNotFoundError(f"ABI not found: {contract_name}")
    with abi_file.open("r", encoding="utf-8") as f:
        data = json.load(f)
    # Hardhat artifacts wrap the ABI
    if isinstance(data, dict):
        return data["abi"]
    return data


def to_utf8_hex_string(value: str) -> str:
    """Encode ``value`` as UTF-8, right-padded with zeros to 32 bytes, as 0x-hex."""
    raw = value.encode("utf-8")
    if len(raw) > 32:
        raise ValueError(f"'{value}' does not fit in 32 bytes")
    return "0x" + raw.ljust(32, b"\x00").hex()


def calculate_round_id(block_timestamp: int, first_round_start: int, epoch_duration: int) -> int:
    """
    Voting round containing ``block_timestamp``.

    Uses floor division so the result matches the network's own numbering.

    Raises:
        ValueError: If the duration is not positive or the timestamp precedes
            the first voting round.
    """
    if epoch_duration <= 0:
        raise ValueError(f"epoch duration must be positive, got {epoch_duration}")
    if block_timestamp < first_round_start:
        raise ValueError(
            f"block timestamp {block_timestamp} precedes first voting round start {first_round_start}"
        )
    return (block_timestamp - first_round_start) // epoch_duration


def abi_type_string(component: Mapping[str, Any]) -> str:
    """Canonical ABI type of a component, tuples expanded (e.g. ``(string,uint256)[]``)."""
    return collapse_if_tuple(dict(component))


def abi_signature(component: Mapping[str, Any]) -> str:
    """Compact JSON form of an ABI component, as expected by the verifier."""
    return json.dumps(component, separators=(",", ":"))


def compact_json(value: Any) -> str:
    """Compact JSON string; strings are passed through unchanged."""
    if isinstance(value, str):
        return value
    return json.dumps(value if value is not None else {}, separators=(",", ":"))
