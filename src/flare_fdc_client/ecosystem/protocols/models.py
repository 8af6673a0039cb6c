"""Data models for FDC attestation requests and proofs."""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from hexbytes import HexBytes
from pydantic import BaseModel, ConfigDict, Field

from flare_fdc_client.common import abi_signature, compact_json, to_utf8_hex_string


class AttestationType(str, Enum):
    """Supported FDC attestation types."""

    WEB2_JSON = "Web2Json"
    JSON_API = "JsonApi"
    ADDRESS_VALIDITY = "AddressValidity"
    EVM_TRANSACTION = "EVMTransaction"
    PAYMENT = "Payment"
    CONFIRMED_BLOCK_HEIGHT_EXISTS = "ConfirmedBlockHeightExists"
    BALANCE_DECREASING_TRANSACTION = "BalanceDecreasingTransaction"
    REFERENCED_PAYMENT_NONEXISTENCE = "ReferencedPaymentNonexistence"

    @property
    def encoded(self) -> str:
        return to_utf8_hex_string(self.value)


class SourceId(str, Enum):
    """Data sources known to the verifiers."""

    PUBLIC_WEB2 = "PublicWeb2"
    WEB2 = "WEB2"
    ETH = "ETH"
    FLR = "FLR"
    SGB = "SGB"
    BTC = "BTC"
    DOGE = "DOGE"
    XRP = "XRP"
    TEST_ETH = "testETH"
    TEST_FLR = "testFLR"
    TEST_SGB = "testSGB"
    TEST_BTC = "testBTC"
    TEST_DOGE = "testDOGE"
    TEST_XRP = "testXRP"

    @property
    def encoded(self) -> str:
        return to_utf8_hex_string(self.value)


class EncodingRequest(BaseModel):
    """Request sent to the verifier to prepare an attestation."""

    model_config = ConfigDict(frozen=True)

    source_url: str
    post_process_filter: str = Field(..., description="jq filter applied to the response")
    result_shape_descriptor: Union[Dict[str, Any], str] = Field(
        ..., description="ABI component describing the filtered result"
    )
    http_method: str = "GET"
    headers: Dict[str, str] = Field(default_factory=dict)
    query_params: Dict[str, Any] = Field(default_factory=dict)
    body: Dict[str, Any] = Field(default_factory=dict)
    attestation_type: AttestationType = AttestationType.WEB2_JSON
    source_id: SourceId = SourceId.PUBLIC_WEB2

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for the verifier's prepareRequest endpoint."""
        shape = self.result_shape_descriptor
        return {
            "attestationType": self.attestation_type.encoded,
            "sourceId": self.source_id.encoded,
            "requestBody": {
                "url": self.source_url,
                "httpMethod": self.http_method.upper(),
                "headers": compact_json(self.headers),
                "queryParams": compact_json(self.query_params),
                "body": compact_json(self.body),
                "postProcessJq": self.post_process_filter,
                "abiSignature": shape if isinstance(shape, str) else abi_signature(shape),
            },
        }


class EncodedAttestation(BaseModel):
    """ABI-encoded request returned by the verifier."""

    model_config = ConfigDict(frozen=True)

    abi_encoded_request: str
    status: str = "VALID"

    @property
    def request_bytes(self) -> bytes:
        return bytes(HexBytes(self.abi_encoded_request))


class SubmittedAttestation(BaseModel):
    """An attestation request accepted by FdcHub."""

    model_config = ConfigDict(frozen=True)

    tx_hash: str
    block_number: int
    block_timestamp: int
    fee: int
    round_id: int


class Proof(BaseModel):
    """
    Proof served by the Data Availability Layer.

    A proof is pending until the DA Layer populates ``payload_hex``.
    """

    model_config = ConfigDict(frozen=True)

    payload_hex: Optional[str] = None
    attestation_type: Optional[str] = None
    merkle_proof: List[str] = Field(default_factory=list)

    @property
    def is_ready(self) -> bool:
        return bool(self.payload_hex)

    @classmethod
    def from_response(cls, data: Optional[Dict[str, Any]]) -> "Proof":
        """Build a proof from a DA Layer response body (empty bodies give a pending proof)."""
        if not isinstance(data, dict) or not data:
            return cls()
        return cls(
            payload_hex=data.get("response_hex") or None,
            attestation_type=data.get("attestation_type"),
            merkle_proof=list(data.get("proof") or []),
        )


class AttestationResult(BaseModel):
    """Everything produced by one attestation flow."""

    model_config = ConfigDict(frozen=True)

    encoded: EncodedAttestation
    submission: SubmittedAttestation
    proof: Proof
