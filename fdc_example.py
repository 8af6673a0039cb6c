#!/usr/bin/env python3
"""
Example usage of the Flare Data Connector (FDC) with a Web2Json attestation.

This example demonstrates how to:
1. Prepare a Web2Json request with the verifier
2. Submit it to FdcHub and compute its voting round
3. Wait for the round to be finalized
4. Retrieve the proof from the Data Availability Layer
5. Feed the proof into a contract that stores the data and computes a BMI
"""

import asyncio
import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from flare_fdc_client.common import FdcError
from flare_fdc_client.ecosystem.protocols import (
    DALayerClient,
    EncodingRequest,
    FDC,
    ProofConsumer,
    VerifierClient,
)
from flare_fdc_client.ecosystem.protocols.workflow import AttestationWorkflow
from flare_fdc_client.ecosystem.settings_models import EcosystemSettingsModel
from flare_fdc_client.logging import configure_logging

CHARACTER_URL = "https://swapi.info/api/people/3"
CHARACTER_JQ = (
    '{name: .name, height: .height, mass: .mass, numberOfFilms: .films | length, '
    'uid: (.url | split("/") | .[-1] | tonumber)}'
)
CHARACTER_SHAPE = {
    "components": [
        {"internalType": "string", "name": "name", "type": "string"},
        {"internalType": "uint256", "name": "height", "type": "uint256"},
        {"internalType": "uint256", "name": "mass", "type": "uint256"},
        {"internalType": "uint256", "name": "numberOfFilms", "type": "uint256"},
        {"internalType": "uint256", "name": "uid", "type": "uint256"},
    ],
    "name": "task",
    "type": "tuple",
}


async def example_fdc_usage():
    """Attest a Star Wars character and store it on-chain."""

    settings = EcosystemSettingsModel()
    contract_address = os.getenv("STAR_WARS_CONTRACT_ADDRESS")

    fdc_client = await FDC.create(settings)
    consumer = None
    if contract_address:
        consumer = ProofConsumer(
            fdc_client, contract_address, "StarWarsCharacterListV2", "addCharacter"
        )

    print("🚀 FDC Web2Json Example")
    print("=" * 50)

    request = EncodingRequest(
        source_url=CHARACTER_URL,
        post_process_filter=CHARACTER_JQ,
        result_shape_descriptor=CHARACTER_SHAPE,
        headers={"Content-Type": "text/plain"},
    )

    async with VerifierClient(settings) as verifier_client, DALayerClient(settings) as da_client:
        workflow = AttestationWorkflow(fdc_client, verifier_client, da_client, consumer)
        try:
            result = await workflow.run(request)
        except FdcError as e:
            print(f"❌ Attestation failed during {e.phase}: {e}")
            return

    print(f"✅ Request submitted: {result.submission.tx_hash}")
    print(f"   Voting round: {result.submission.round_id}")
    print(f"   Merkle proof: {len(result.proof.merkle_proof)} nodes")

    if consumer is None:
        print("ℹ️  Set STAR_WARS_CONTRACT_ADDRESS to submit the proof on-chain")
        return

    response = consumer.decode_response(result.proof)
    character = consumer.decode_response_body(response[5][0], CHARACTER_SHAPE)
    print(f"\n📦 Attested data: {character}")

    try:
        tx_hash = await consumer.submit_proof(result.proof)
    except FdcError as e:
        print(f"❌ Proof submission failed: {e}")
        return
    print(f"✅ Proof accepted: {tx_hash}")

    for name, movies, uid, bmi in await consumer.read("getAllCharacters"):
        print(f"   #{uid} {name}: {movies} films, BMI {bmi / 100:.2f}")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(example_fdc_usage())
