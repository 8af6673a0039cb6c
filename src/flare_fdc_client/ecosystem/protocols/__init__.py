from .consumer import ProofConsumer
from .da_layer import DALayerClient
from .fdc import FDC
from .models import (
    AttestationResult,
    AttestationType,
    EncodedAttestation,
    EncodingRequest,
    Proof,
    SourceId,
    SubmittedAttestation,
)
from .verifier import VerifierClient
from .workflow import AttestationWorkflow

__all__ = [
    "AttestationResult",
    "AttestationType",
    "AttestationWorkflow",
    "DALayerClient",
    "EncodedAttestation",
    "EncodingRequest",
    "FDC",
    "Proof",
    "ProofConsumer",
    "SourceId",
    "SubmittedAttestation",
    "VerifierClient",
]
