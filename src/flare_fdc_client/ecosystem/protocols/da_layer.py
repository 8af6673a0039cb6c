"""Data Availability Layer client for FDC attestation proofs."""

import asyncio
from typing import Any, Dict, Optional

import aiohttp
import structlog

from flare_fdc_client.common import DALayerError, ProofRetrievalError
from flare_fdc_client.ecosystem.protocols.models import EncodedAttestation, Proof
from flare_fdc_client.ecosystem.settings_models import EcosystemSettingsModel

logger = structlog.get_logger(__name__)

PROOF_BY_REQUEST_ROUND_PATH = "/api/v1/fdc/proof-by-request-round-raw"


class DALayerClient:
    """Client for interacting with FDC Data Availability Layer."""

    def __init__(
        self,
        settings: EcosystemSettingsModel,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the DA Layer client.

        Args:
            settings: Ecosystem settings holding the DA Layer URL and the
                      polling/retry budget.
            session: Optional externally managed HTTP session.
        """
        self.base_url = str(settings.da_layer_url).rstrip("/")
        self.api_key = (
            settings.da_layer_api_key.get_secret_value()
            if settings.da_layer_api_key
            else None
        )
        self.timeout = settings.http_timeout
        self.poll_interval = settings.proof_poll_interval
        self.retry_attempts = settings.proof_retry_attempts
        self.retry_delay = settings.proof_retry_delay
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self):
        """Async context manager entry."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self.session and self._owns_session:
            await self.session.close()
            self.session = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-API-KEY"] = self.api_key
        return headers

    async def get_proof(self, round_id: int, encoded: EncodedAttestation) -> Proof:
        """
        Request the proof for an attestation once.

        Args:
            round_id: Voting round the request was submitted in.
            encoded: The encoded attestation request.

        Returns:
            The proof, which is pending if the DA Layer has not assembled it yet.

        Raises:
            DALayerError: If the DA Layer answers with a non-200 status or a
                body that is not a JSON object.
        """
        if not self.session:
            raise RuntimeError("DA Layer client not initialized. Use async context manager.")

        url = f"{self.base_url}{PROOF_BY_REQUEST_ROUND_PATH}"
        payload = {
            "votingRoundId": round_id,
            "requestBytes": encoded.abi_encoded_request,
        }
        async with self.session.post(url, json=payload, headers=self._headers()) as response:
            if response.status != 200:
                logger.warning(
                    "Failed to retrieve proof", round_id=round_id, status=response.status
                )
                raise DALayerError(
                    f"DA Layer returned status {response.status}", status=response.status
                )
            data: Any = await response.json(content_type=None)

        if data is not None and not isinstance(data, dict):
            logger.warning(
                "Unexpected proof response body",
                round_id=round_id,
                body_type=type(data).__name__,
            )
            raise DALayerError(f"DA Layer returned a {type(data).__name__} body", status=200)
        proof = Proof.from_response(data)
        logger.debug("Retrieved proof", round_id=round_id, ready=proof.is_ready)
        return proof

    async def wait_for_proof(self, round_id: int, encoded: EncodedAttestation) -> Proof:
        """Poll until the DA Layer has populated the proof payload."""
        polls = 0
        while True:
            polls += 1
            proof = await self.get_proof(round_id, encoded)
            if proof.is_ready:
                logger.info(
                    "Proof ready",
                    round_id=round_id,
                    polls=polls,
                    proof_length=len(proof.merkle_proof),
                )
                return proof
            logger.debug("Proof not ready yet", round_id=round_id, polls=polls)
            await asyncio.sleep(self.poll_interval)

    async def fetch_proof(self, round_id: int, encoded: EncodedAttestation) -> Proof:
        """
        Retrieve the proof for a finalized round with bounded retry.

        Each attempt polls until the proof is ready. Any error aborts the
        attempt and, after ``proof_retry_delay`` seconds, starts a fresh one.

        Args:
            round_id: Voting round the request was submitted in.
            encoded: The encoded attestation request.

        Returns:
            The ready proof.

        Raises:
            ProofRetrievalError: If every attempt failed.
        """
        last_error: Optional[Exception] = None
        for attempt in range(1, self.retry_attempts + 1):
            try:
                return await self.wait_for_proof(round_id, encoded)
            except Exception as e:
                last_error = e
                logger.warning(
                    "Proof retrieval attempt failed",
                    round_id=round_id,
                    attempt=attempt,
                    max_attempts=self.retry_attempts,
                    error=str(e),
                )
                if attempt < self.retry_attempts:
                    await asyncio.sleep(self.retry_delay)

        logger.error("Proof retrieval exhausted", round_id=round_id, attempts=self.retry_attempts)
        raise ProofRetrievalError(round_id, self.retry_attempts, last_error)
