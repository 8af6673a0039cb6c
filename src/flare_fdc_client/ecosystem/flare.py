"""Base connection to the Flare network."""

from typing import Any, Dict, Optional

import aiohttp
import structlog
from eth_account import Account
from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.contract.async_contract import AsyncContract, AsyncContractFunction
from web3.exceptions import ContractLogicError, Web3Exception
from web3.types import TxParams, TxReceipt

from flare_fdc_client.common import FlareError, FlareTxError, load_abi
from flare_fdc_client.ecosystem.settings_models import EcosystemSettingsModel

logger = structlog.get_logger(__name__)


class Flare:
    """Handles the Web3 connection, account and system contract lookups."""

    def __init__(self, settings: EcosystemSettingsModel) -> None:
        """
        Initialize the Flare connection.

        Args:
            settings: Instance of EcosystemSettingsModel containing connection
                      and account details.
        """
        self.settings = settings
        self.w3 = AsyncWeb3(AsyncHTTPProvider(str(settings.web3_provider_url)))
        self.private_key: Optional[str] = (
            settings.account_private_key.get_secret_value()
            if settings.account_private_key
            else None
        )
        self.address: Optional[ChecksumAddress] = None
        if settings.account_address:
            self.address = self.w3.to_checksum_address(settings.account_address)
        elif self.private_key:
            self.address = self.w3.to_checksum_address(
                Account.from_key(self.private_key).address
            )
        self.contract_registry = self.w3.eth.contract(
            address=self.w3.to_checksum_address(settings.contract_registry_address),
            abi=load_abi("FlareContractRegistry"),
        )

    async def get_contract_address(self, name: str) -> ChecksumAddress:
        """
        Resolve a system contract address from the FlareContractRegistry.

        Raises:
            FlareError: If the registry has no contract under ``name``.
        """
        address = await self.contract_registry.functions.getContractAddressByName(
            name
        ).call()
        if not address or int(address, 16) == 0:
            raise FlareError(f"Contract '{name}' is not registered")
        logger.debug("Resolved contract address", name=name, address=address)
        return self.w3.to_checksum_address(address)

    async def get_contract(
        self, name: str, address_override: Optional[str] = None
    ) -> AsyncContract:
        """Contract instance for ``name``, using ``address_override`` when set."""
        if address_override:
            address = self.w3.to_checksum_address(address_override)
        else:
            address = await self.get_contract_address(name)
        return self.w3.eth.contract(address=address, abi=load_abi(name))

    async def build_transaction(
        self,
        function_call: AsyncContractFunction,
        from_addr: Optional[ChecksumAddress],
        value: int = 0,
    ) -> TxParams:
        """
        Build a transaction for a contract function call.

        Args:
            function_call: Bound contract function.
            from_addr: Sender address.
            value: Native value (wei) to attach.

        Returns:
            Transaction parameters ready to be signed.

        Raises:
            FlareTxError: If no account is configured or the node rejects the call.
        """
        if from_addr is None:
            raise FlareTxError("No account configured to send transactions")
        try:
            params: Dict[str, Any] = {
                "from": from_addr,
                "nonce": await self.w3.eth.get_transaction_count(from_addr),
                "chainId": await self.w3.eth.chain_id,
                "value": value,
            }
            if self.settings.tx_gas_limit:
                params["gas"] = self.settings.tx_gas_limit
            tx = await function_call.build_transaction(params)
        except (ContractLogicError, Web3Exception, aiohttp.ClientError, ValueError) as e:
            logger.error("Failed to build transaction", error=str(e))
            raise FlareTxError(f"Failed to build transaction: {e}") from e
        logger.debug("Built transaction", tx=tx)
        return tx

    async def sign_and_send_transaction(self, tx: TxParams) -> str:
        """
        Sign a transaction with the configured key and broadcast it.

        Returns:
            Transaction hash as 0x-prefixed hex.

        Raises:
            FlareTxError: If no private key is configured or the node rejects it.
        """
        if not self.private_key:
            raise FlareTxError("No private key configured to sign transactions")
        try:
            signed = self.w3.eth.account.sign_transaction(tx, private_key=self.private_key)
        except (TypeError, ValueError) as e:
            logger.error("Failed to sign transaction", error=str(e))
            raise FlareTxError(f"Failed to sign transaction: {e}") from e
        try:
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except (Web3Exception, aiohttp.ClientError, ValueError) as e:
            logger.error("Failed to send transaction", error=str(e))
            raise FlareTxError(f"Failed to send transaction: {e}") from e
        tx_hash_hex = HexBytes(tx_hash).to_0x_hex()
        logger.info("Transaction sent", tx_hash=tx_hash_hex)
        return tx_hash_hex

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        """Wait for a transaction to be mined and return its receipt."""
        receipt = await self.w3.eth.wait_for_transaction_receipt(HexBytes(tx_hash))
        logger.debug(
            "Transaction mined",
            tx_hash=tx_hash,
            block_number=receipt["blockNumber"],
            status=receipt["status"],
        )
        return receipt

    async def get_block_timestamp(self, block_number: int) -> int:
        """Timestamp of the block with the given number."""
        block = await self.w3.eth.get_block(block_number)
        return int(block["timestamp"])

    async def send_contract_call(
        self, function_call: AsyncContractFunction, value: int = 0
    ) -> TxReceipt:
        """
        Build, sign and send a contract call, then wait for its receipt.

        Raises:
            FlareTxError: If the transaction fails or reverts.
        """
        tx = await self.build_transaction(function_call, self.address, value=value)
        tx_hash = await self.sign_and_send_transaction(tx)
        receipt = await self.wait_for_receipt(tx_hash)
        if receipt["status"] != 1:
            raise FlareTxError(f"Transaction {tx_hash} reverted")
        return receipt
