import pytest
from pydantic import SecretStr

from flare_fdc_client.ecosystem.protocols.fdc import FDC
from flare_fdc_client.ecosystem.settings_models import EcosystemSettingsModel
from tests.fakes import fake_contract

# Well-known local development key (hardhat account #0)
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
EPOCH_START = 1658430000


@pytest.fixture
def settings() -> EcosystemSettingsModel:
    return EcosystemSettingsModel(
        _env_file=None,
        web3_provider_url="http://127.0.0.1:8545",
        account_private_key=SecretStr(TEST_PRIVATE_KEY),
        verifier_url="https://verifier.test/",
        verifier_api_key=SecretStr("verifier-key"),
        da_layer_url="https://da.test/",
        da_layer_api_key=SecretStr("da-key"),
        fdc_hub_address="0x" + "01" * 20,
        fdc_request_fee_address="0x" + "02" * 20,
        relay_address="0x" + "03" * 20,
        flare_systems_manager_address="0x" + "04" * 20,
        finality_poll_interval=0,
        proof_poll_interval=0,
        proof_retry_delay=0,
    )


@pytest.fixture
def fdc(settings):
    client = FDC(settings)
    client.fdc_hub = fake_contract(requestAttestation=lambda data: ("requestAttestation", data))
    client.fdc_request_fee = fake_contract(getRequestFee=lambda data: 10)
    client.flare_systems_manager = fake_contract(
        firstVotingRoundStartTs=lambda: EPOCH_START,
        votingEpochDurationSeconds=lambda: 90,
    )
    client.sent = []

    async def build_transaction(function_call, from_addr, value=0):
        return {"call": function_call, "from": from_addr, "value": value}

    async def sign_and_send_transaction(tx):
        client.sent.append(tx)
        return "0x" + "ab" * 32

    async def wait_for_receipt(tx_hash):
        return {"status": 1, "blockNumber": 123, "transactionHash": tx_hash}

    async def get_block_timestamp(block_number):
        assert block_number == 123
        return EPOCH_START + 90 * 1000 + 45

    client.build_transaction = build_transaction
    client.sign_and_send_transaction = sign_and_send_transaction
    client.wait_for_receipt = wait_for_receipt
    client.get_block_timestamp = get_block_timestamp
    return client
