"""Settings for Flare ecosystem and FDC interactions."""

from typing import Optional

from pydantic import Field, HttpUrl, PositiveInt, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# FlareContractRegistry is deployed at the same address on every Flare network
FLARE_CONTRACT_REGISTRY_ADDRESS = "0xaD67FE66660Fb8dFE9d6b1b4240d8650e30F6019"
FDC_PROTOCOL_ID = 200


class EcosystemSettingsModel(BaseSettings):
    """Configuration specific to the Flare ecosystem interactions."""

    model_config = SettingsConfigDict(
        env_prefix="FDC__", env_file=".env", extra="ignore"
    )

    web3_provider_url: HttpUrl = Field(
        "https://coston2-api.flare.network/ext/C/rpc",
        description="Flare RPC endpoint URL.",
    )
    account_address: Optional[str] = Field(
        None, description="Account address used to sign transactions."
    )
    account_private_key: Optional[SecretStr] = Field(
        None, description="Private key of the signing account."
    )
    is_testnet: bool = Field(
        True, description="Whether the provider points at a test network."
    )
    contract_registry_address: str = Field(
        FLARE_CONTRACT_REGISTRY_ADDRESS,
        description="FlareContractRegistry address used to resolve system contracts.",
    )
    fdc_hub_address: Optional[str] = Field(None, description="FdcHub override.")
    fdc_request_fee_address: Optional[str] = Field(
        None, description="FdcRequestFeeConfigurations override."
    )
    relay_address: Optional[str] = Field(None, description="Relay override.")
    flare_systems_manager_address: Optional[str] = Field(
        None, description="FlareSystemsManager override."
    )
    tx_gas_limit: Optional[PositiveInt] = Field(
        None, description="Fixed gas limit; estimated when unset."
    )

    verifier_url: HttpUrl = Field(
        "https://fdc-verifiers-testnet.flare.network/",
        description="Base URL of the attestation verifier service.",
    )
    verifier_api_key: SecretStr = Field(
        SecretStr("00000000-0000-0000-0000-000000000000"),
        description="API key sent to the verifier in the X-API-KEY header.",
    )
    verifier_source_path: str = Field(
        "web2", description="Verifier path segment for the data source."
    )
    da_layer_url: HttpUrl = Field(
        "https://ctn2-data-availability.flare.network/",
        description="Base URL of the Data Availability Layer.",
    )
    da_layer_api_key: Optional[SecretStr] = Field(
        None, description="Optional API key for the Data Availability Layer."
    )

    fdc_protocol_id: int = Field(
        FDC_PROTOCOL_ID, description="Relay protocol id of the FDC."
    )
    http_timeout: float = Field(30, gt=0, description="HTTP timeout in seconds.")
    finality_poll_interval: float = Field(
        30, ge=0, description="Seconds between round finality checks."
    )
    proof_poll_interval: float = Field(
        10, ge=0, description="Seconds between proof polls within one attempt."
    )
    proof_retry_attempts: PositiveInt = Field(
        10, description="Maximum number of proof retrieval attempts."
    )
    proof_retry_delay: float = Field(
        20, ge=0, description="Seconds between proof retrieval attempts."
    )
