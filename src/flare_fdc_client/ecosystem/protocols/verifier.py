"""Client for the FDC attestation verifier service."""

from typing import Optional

import aiohttp
import structlog

from flare_fdc_client.common import EncodingError
from flare_fdc_client.ecosystem.protocols.models import EncodedAttestation, EncodingRequest
from flare_fdc_client.ecosystem.settings_models import EcosystemSettingsModel

logger = structlog.get_logger(__name__)


class VerifierClient:
    """Prepares attestation requests with a verifier server."""

    def __init__(
        self,
        settings: EcosystemSettingsModel,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the verifier client.

        Args:
            settings: Ecosystem settings holding the verifier URL and API key.
            session: Optional externally managed HTTP session.
        """
        self.base_url = str(settings.verifier_url).rstrip("/")
        self.source_path = settings.verifier_source_path.strip("/")
        self.api_key = settings.verifier_api_key.get_secret_value()
        self.timeout = settings.http_timeout
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

    def prepare_request_url(self, request: EncodingRequest) -> str:
        return (
            f"{self.base_url}/verifier/{self.source_path}/"
            f"{request.attestation_type.value}/prepareRequest"
        )

    async def prepare_request(self, request: EncodingRequest) -> EncodedAttestation:
        """
        Ask the verifier to fetch the source, apply the filter and encode the request.

        Args:
            request: Attestation request parameters.

        Returns:
            The ABI-encoded attestation request.

        Raises:
            EncodingError: If the verifier answers with a non-200 status, an
                invalid status, no encoded request, or cannot be reached.
        """
        if not self.session:
            raise RuntimeError("Verifier client not initialized. Use async context manager.")

        url = self.prepare_request_url(request)
        headers = {"X-API-KEY": self.api_key, "Content-Type": "application/json"}
        logger.debug("Preparing attestation request", url=url, source_url=request.source_url)

        try:
            async with self.session.post(url, json=request.to_payload(), headers=headers) as response:
                if response.status != 200:
                    text = await response.text()
                    logger.error(
                        "Verifier rejected request", status=response.status, body=text
                    )
                    raise EncodingError(
                        f"verifier returned status {response.status}: {text}",
                        status=response.status,
                    )
                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    logger.error("Verifier returned malformed JSON", error=str(e))
                    raise EncodingError(f"verifier returned malformed JSON: {e}", status=200) from e
        except aiohttp.ClientError as e:
            logger.error("Error contacting verifier", error=str(e))
            raise EncodingError(f"verifier unreachable: {e}") from e

        if not isinstance(data, dict):
            raise EncodingError("verifier returned an empty response", status=200)
        status = data.get("status")
        encoded = data.get("abiEncodedRequest")
        if status != "VALID" or not encoded:
            logger.error("Verifier could not encode request", status=status)
            raise EncodingError(f"verifier returned status '{status}'", status=200)

        logger.info("Attestation request prepared", abi_encoded_request=encoded[:42])
        return EncodedAttestation(abi_encoded_request=encoded, status=status)
