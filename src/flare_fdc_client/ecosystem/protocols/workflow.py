"""End-to-end FDC attestation flow."""

from typing import Optional

import structlog

from flare_fdc_client.ecosystem.protocols.consumer import ProofConsumer
from flare_fdc_client.ecosystem.protocols.da_layer import DALayerClient
from flare_fdc_client.ecosystem.protocols.fdc import FDC
from flare_fdc_client.ecosystem.protocols.models import (
    AttestationResult,
    EncodedAttestation,
    EncodingRequest,
    Proof,
    SubmittedAttestation,
)
from flare_fdc_client.ecosystem.protocols.verifier import VerifierClient

logger = structlog.get_logger(__name__)


class AttestationWorkflow:
    """
    Runs the FDC phases in order: encode, submit, wait for finality, fetch proof.

    Each phase finishes (or fails) before the next one starts.
    """

    def __init__(
        self,
        fdc_client: FDC,
        verifier_client: VerifierClient,
        da_client: DALayerClient,
        consumer: Optional[ProofConsumer] = None,
        finality_timeout: Optional[float] = None,
    ):
        """
        Args:
            fdc_client: Initialized FDC client.
            verifier_client: Verifier client (inside its context manager).
            da_client: Data Availability Layer client (inside its context manager).
            consumer: Optional destination contract the proof is fed into.
            finality_timeout: Optional bound, in seconds, on waiting for finality.
        """
        self.fdc_client = fdc_client
        self.verifier_client = verifier_client
        self.da_client = da_client
        self.consumer = consumer
        self.finality_timeout = finality_timeout

    async def encode(self, request: EncodingRequest) -> EncodedAttestation:
        logger.info("Phase started", phase="encoding", source_url=request.source_url)
        return await self.verifier_client.prepare_request(request)

    async def submit(self, encoded: EncodedAttestation) -> SubmittedAttestation:
        logger.info("Phase started", phase="submission")
        return await self.fdc_client.request_attestation(encoded)

    async def wait_for_finality(self, submission: SubmittedAttestation) -> None:
        logger.info("Phase started", phase="finality", round_id=submission.round_id)
        await self.fdc_client.wait_for_round_finalization(
            submission.round_id, timeout=self.finality_timeout
        )

    async def fetch_proof(
        self, submission: SubmittedAttestation, encoded: EncodedAttestation
    ) -> Proof:
        logger.info("Phase started", phase="proof_retrieval", round_id=submission.round_id)
        return await self.da_client.fetch_proof(submission.round_id, encoded)

    async def run(self, request: EncodingRequest) -> AttestationResult:
        """
        Run one attestation from request to ready proof.

        Errors from any phase propagate unchanged.
        """
        encoded = await self.encode(request)
        submission = await self.submit(encoded)
        await self.wait_for_finality(submission)
        proof = await self.fetch_proof(submission, encoded)
        logger.info(
            "Attestation complete",
            round_id=submission.round_id,
            merkle_proof_length=len(proof.merkle_proof),
        )
        return AttestationResult(encoded=encoded, submission=submission, proof=proof)

    async def run_and_submit(self, request: EncodingRequest) -> tuple[AttestationResult, str]:
        """Run the attestation and feed the proof into the configured consumer."""
        if self.consumer is None:
            raise RuntimeError("No proof consumer configured")
        result = await self.run(request)
        logger.info("Phase started", phase="proof_submission")
        tx_hash = await self.consumer.submit_proof(result.proof)
        return result, tx_hash
