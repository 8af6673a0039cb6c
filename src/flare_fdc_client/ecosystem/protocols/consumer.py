"""Feeds FDC proofs into a destination contract."""

import json
from typing import Any, Dict, List, Mapping, Sequence, Union

import aiohttp
import structlog
from hexbytes import HexBytes
from web3.exceptions import Web3Exception

from flare_fdc_client.common import (
    FlareTxError,
    ProofNotReadyError,
    SubmissionError,
    abi_type_string,
    load_abi,
)
from flare_fdc_client.ecosystem.flare import Flare
from flare_fdc_client.ecosystem.protocols.models import Proof

logger = structlog.get_logger(__name__)

AbiComponent = Mapping[str, Any]


def find_function_abi(abi: Sequence[AbiComponent], function_name: str) -> AbiComponent:
    """
    Find a function entry in a contract ABI.

    Args:
        abi: Contract ABI.
        function_name: Name of the function.

    Returns:
        The ABI entry of the function.

    Raises:
        ValueError: If the ABI has no function with that name.
    """
    for entry in abi:
        if entry.get("type") == "function" and entry.get("name") == function_name:
            return entry
    raise ValueError(f"function '{function_name}' not found in ABI")


def response_type_from_abi(
    abi: Sequence[AbiComponent],
    function_name: str,
    proof_arg: int = 0,
    data_field: str = "data",
) -> str:
    """
    Canonical ABI type of the attestation response a contract function expects.

    The function's ``proof_arg``-th input is the proof struct; its
    ``data_field`` component is the attestation response.

    Args:
        abi: Contract ABI.
        function_name: Function that accepts the proof.
        proof_arg: Index of the proof argument.
        data_field: Name of the response component inside the proof struct.

    Returns:
        Type string such as ``(bytes32,bytes32,uint64,...)``.
    """
    function_abi = find_function_abi(abi, function_name)
    proof_input = function_abi["inputs"][proof_arg]
    for component in proof_input.get("components", []):
        if component["name"] == data_field:
            return abi_type_string(component)
    raise ValueError(f"'{function_name}' proof argument has no '{data_field}' component")


def name_values(component: AbiComponent, value: Any) -> Any:
    """Turn decoded tuples into dicts keyed by the ABI component names."""
    component_type = component["type"]
    if component_type.startswith("tuple"):
        if component_type.endswith("]"):
            inner = dict(component, type=component_type[: component_type.rindex("[")])
            return [name_values(inner, item) for item in value]
        return {
            child["name"]: name_values(child, item)
            for child, item in zip(component["components"], value)
        }
    return value


class ProofConsumer:
    """Decodes a proof and submits it to a destination contract."""

    def __init__(
        self,
        flare: Flare,
        address: str,
        abi: Union[str, List[Dict[str, Any]]],
        method_name: str,
        proof_arg: int = 0,
        data_field: str = "data",
    ) -> None:
        """
        Args:
            flare: Connected Flare client used to sign and send.
            address: Destination contract address.
            abi: ABI list or the name of a bundled ABI.
            method_name: State-mutating method taking the proof struct.
            proof_arg: Index of the proof argument of ``method_name``.
            data_field: Name of the response component inside the proof struct.
        """
        self.flare = flare
        self.abi = load_abi(abi) if isinstance(abi, str) else abi
        self.method_name = method_name
        self.contract = flare.w3.eth.contract(
            address=flare.w3.to_checksum_address(address), abi=self.abi
        )
        self.response_type = response_type_from_abi(
            self.abi, method_name, proof_arg=proof_arg, data_field=data_field
        )

    def decode_response(self, proof: Proof) -> tuple:
        """
        Decode the proof payload into the response struct.

        Raises:
            ProofNotReadyError: If the proof has no payload yet.
        """
        if not proof.is_ready:
            raise ProofNotReadyError("proof payload is not populated")
        (response,) = self.flare.w3.codec.decode(
            [self.response_type], HexBytes(proof.payload_hex)
        )
        return response

    def decode_response_body(
        self, abi_encoded_data: bytes, abi_signature: Union[str, AbiComponent]
    ) -> Any:
        """Decode the attested data using the ABI signature sent with the request."""
        component = json.loads(abi_signature) if isinstance(abi_signature, str) else abi_signature
        (value,) = self.flare.w3.codec.decode(
            [abi_type_string(component)], HexBytes(abi_encoded_data)
        )
        return name_values(component, value)

    async def submit_proof(self, proof: Proof) -> str:
        """
        Call the destination method with ``(merkleProof, decodedResponse)``.

        The contract verifies the proof itself before accepting the data.

        Returns:
            Hash of the mined transaction.

        Raises:
            ProofNotReadyError: If the proof is still pending.
            SubmissionError: If the transaction fails or reverts.
        """
        response = self.decode_response(proof)
        merkle_proof = [HexBytes(node) for node in proof.merkle_proof]
        function_call = getattr(self.contract.functions, self.method_name)(
            (merkle_proof, response)
        )
        try:
            receipt = await self.flare.send_contract_call(function_call)
        except (FlareTxError, Web3Exception, aiohttp.ClientError, ValueError) as e:
            logger.error("Failed to submit proof", method=self.method_name, error=str(e))
            raise SubmissionError(f"failed to submit proof: {e}", phase="proof_submission") from e
        tx_hash = HexBytes(receipt["transactionHash"]).to_0x_hex()
        logger.info("Proof submitted", method=self.method_name, tx_hash=tx_hash)
        return tx_hash

    async def read(self, method_name: str, *args: Any) -> Any:
        """
        Call a read-only method of the destination contract.

        Args:
            method_name: Name of the view function.
            *args: Arguments passed to the function.

        Returns:
            The decoded return value.
        """
        return await getattr(self.contract.functions, method_name)(*args).call()
