"""Interactions with Flare Data Connector (FDC)."""

import asyncio
from typing import Optional, Self

import aiohttp
import structlog
from web3.contract.async_contract import AsyncContract
from web3.exceptions import Web3Exception

from flare_fdc_client.common import (
    FinalityTimeout,
    FlareTxError,
    SubmissionError,
    calculate_round_id,
)
from flare_fdc_client.ecosystem.flare import Flare
from flare_fdc_client.ecosystem.protocols.models import EncodedAttestation, SubmittedAttestation
from flare_fdc_client.ecosystem.settings_models import EcosystemSettingsModel

logger = structlog.get_logger(__name__)


class FDC(Flare):
    """Handles interactions with the Flare Data Connector."""

    def __init__(self, settings: EcosystemSettingsModel) -> None:
        """
        Initialize the FDC client.

        Args:
            settings: Instance of EcosystemSettingsModel containing connection
                      and account details.
        """
        super().__init__(settings)
        self.protocol_id = settings.fdc_protocol_id
        self.finality_poll_interval = settings.finality_poll_interval
        self.fdc_hub: Optional[AsyncContract] = None
        self.fdc_request_fee: Optional[AsyncContract] = None
        self.flare_systems_manager: Optional[AsyncContract] = None
        self.relay: Optional[AsyncContract] = None

    @classmethod
    async def create(cls, settings: EcosystemSettingsModel) -> Self:
        """
        Asynchronously creates and initializes an FDC instance.

        Args:
            settings: Instance of EcosystemSettingsModel.

        Returns:
            A fully initialized FDC instance.
        """
        instance = cls(settings)
        logger.debug("Initializing FDC...")
        instance.fdc_hub = await instance.get_contract("FdcHub", settings.fdc_hub_address)
        instance.fdc_request_fee = await instance.get_contract(
            "FdcRequestFeeConfigurations", settings.fdc_request_fee_address
        )
        instance.flare_systems_manager = await instance.get_contract(
            "FlareSystemsManager", settings.flare_systems_manager_address
        )
        instance.relay = await instance.get_contract("Relay", settings.relay_address)
        logger.debug("FDC initialized", fdc_hub=instance.fdc_hub.address)
        return instance

    async def get_request_fee(self, encoded: EncodedAttestation) -> int:
        """Fee (wei) FdcHub expects for this request."""
        fee = await self.fdc_request_fee.functions.getRequestFee(encoded.request_bytes).call()
        logger.debug("Fetched request fee", fee=fee)
        return int(fee)

    async def get_voting_epoch_config(self) -> tuple[int, int]:
        """First voting round start timestamp and voting epoch duration (seconds)."""
        start = await self.flare_systems_manager.functions.firstVotingRoundStartTs().call()
        duration = await self.flare_systems_manager.functions.votingEpochDurationSeconds().call()
        return int(start), int(duration)

    async def calculate_round_id(self, block_timestamp: int) -> int:
        start, duration = await self.get_voting_epoch_config()
        return calculate_round_id(block_timestamp, start, duration)

    async def request_attestation(self, encoded: EncodedAttestation) -> SubmittedAttestation:
        """
        Submit an encoded attestation request to FdcHub with the exact fee.

        Args:
            encoded: Request encoded by the verifier.

        Returns:
            The submission, including the voting round it landed in.

        Raises:
            SubmissionError: If the transaction cannot be sent or is reverted.
        """
        try:
            fee = await self.get_request_fee(encoded)
            function_call = self.fdc_hub.functions.requestAttestation(encoded.request_bytes)
            tx = await self.build_transaction(function_call, self.address, value=fee)
            tx_hash = await self.sign_and_send_transaction(tx)
            receipt = await self.wait_for_receipt(tx_hash)
        except (FlareTxError, Web3Exception, aiohttp.ClientError, ValueError) as e:
            logger.error("Failed to request attestation", error=str(e))
            raise SubmissionError(f"failed to request attestation: {e}") from e

        if receipt["status"] != 1:
            logger.error("Attestation request reverted", tx_hash=tx_hash)
            raise SubmissionError(f"attestation request {tx_hash} reverted")

        block_number = int(receipt["blockNumber"])
        block_timestamp = await self.get_block_timestamp(block_number)
        round_id = await self.calculate_round_id(block_timestamp)

        logger.info(
            "Attestation request submitted",
            tx_hash=tx_hash,
            fee=fee,
            block_number=block_number,
            round_id=round_id,
        )
        return SubmittedAttestation(
            tx_hash=tx_hash,
            block_number=block_number,
            block_timestamp=block_timestamp,
            fee=fee,
            round_id=round_id,
        )

    async def is_round_finalized(self, round_id: int) -> bool:
        """
        Check once whether the Relay has finalized a voting round.

        Args:
            round_id: Voting round to check.

        Returns:
            True if the round is finalized for the FDC protocol id.
        """
        return bool(await self.relay.functions.isFinalized(self.protocol_id, round_id).call())

    async def wait_for_round_finalization(
        self, round_id: int, timeout: Optional[float] = None
    ) -> None:
        """
        Block until the Relay reports ``round_id`` finalized.

        Finalization is driven by the validators, so there is no built-in
        bound. Pass ``timeout`` to impose one.

        Raises:
            FinalityTimeout: If ``timeout`` is given and elapses first.
        """
        if timeout is None:
            await self._poll_finalization(round_id)
            return
        try:
            await asyncio.wait_for(self._poll_finalization(round_id), timeout)
        except asyncio.TimeoutError as e:
            logger.error("Round not finalized in time", round_id=round_id, timeout=timeout)
            raise FinalityTimeout(round_id, timeout) from e

    async def _poll_finalization(self, round_id: int) -> None:
        attempt = 0
        while True:
            attempt += 1
            if await self.is_round_finalized(round_id):
                logger.info("Round finalized", round_id=round_id, polls=attempt)
                return
            logger.debug("Round not finalized yet", round_id=round_id, polls=attempt)
            await asyncio.sleep(self.finality_poll_interval)
