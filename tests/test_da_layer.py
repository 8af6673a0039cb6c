import aiohttp
import pytest

from flare_fdc_client.common import DALayerError, ProofRetrievalError
from flare_fdc_client.ecosystem.protocols.da_layer import DALayerClient
from flare_fdc_client.ecosystem.protocols.models import EncodedAttestation
from tests.fakes import FakeResponse, FakeSession

ENCODED = EncodedAttestation(abi_encoded_request="0xaa")
MERKLE = ["0x" + f"{i:02x}" * 32 for i in range(4)]
READY = {"response_hex": "0xbb", "attestation_type": "0x57", "proof": MERKLE}


def pending():
    return FakeResponse(200, {})


def ready():
    return FakeResponse(200, READY)


async def test_get_proof_posts_round_and_request(settings):
    session = FakeSession([ready()])
    async with DALayerClient(settings, session=session) as client:
        proof = await client.get_proof(1000, ENCODED)

    assert proof.is_ready
    call = session.calls[0]
    assert call["url"] == "https://da.test/api/v1/fdc/proof-by-request-round-raw"
    assert call["json"] == {"votingRoundId": 1000, "requestBytes": "0xaa"}
    assert call["headers"]["X-API-KEY"] == "da-key"


async def test_get_proof_non_200_raises(settings):
    client = DALayerClient(settings, session=FakeSession([FakeResponse(503)]))
    with pytest.raises(DALayerError) as exc_info:
        await client.get_proof(1, ENCODED)
    assert exc_info.value.status == 503


async def test_inner_poll_waits_until_payload_populated(settings):
    session = FakeSession([pending(), FakeResponse(200, None), ready()])
    client = DALayerClient(settings, session=session)

    proof = await client.fetch_proof(7, ENCODED)

    assert proof.payload_hex == "0xbb"
    assert len(session.calls) == 3


async def test_error_restarts_the_whole_attempt(settings):
    session = FakeSession(
        [pending(), FakeResponse(500), pending(), FakeResponse(200, ValueError("bad json")), ready()]
    )
    client = DALayerClient(settings, session=session)

    proof = await client.fetch_proof(7, ENCODED)

    assert proof.merkle_proof == MERKLE
    assert len(session.calls) == 5


async def test_retry_budget_is_bounded(settings):
    settings = settings.model_copy(update={"proof_retry_attempts": 3})
    session = FakeSession([aiohttp.ClientConnectionError("down")] * 3 + [ready()])
    client = DALayerClient(settings, session=session)

    with pytest.raises(ProofRetrievalError) as exc_info:
        await client.fetch_proof(7, ENCODED)

    assert exc_info.value.attempts == 3
    assert isinstance(exc_info.value.last_error, aiohttp.ClientConnectionError)
    assert len(session.calls) == 3
    assert len(session.responses) == 1


async def test_default_budget_is_ten_attempts(settings):
    session = FakeSession([FakeResponse(502)] * 11)
    client = DALayerClient(settings, session=session)

    with pytest.raises(ProofRetrievalError) as exc_info:
        await client.fetch_proof(7, ENCODED)

    assert exc_info.value.attempts == 10
    assert len(session.calls) == 10


async def test_ready_round_is_idempotent(settings):
    session = FakeSession([ready(), ready()])
    client = DALayerClient(settings, session=session)

    first = await client.fetch_proof(7, ENCODED)
    second = await client.fetch_proof(7, ENCODED)

    assert first == second
    assert len(session.calls) == 2


async def test_requires_session(settings):
    with pytest.raises(RuntimeError):
        await DALayerClient(settings).get_proof(1, ENCODED)


async def test_get_proof_rejects_non_object_body(settings):
    client = DALayerClient(settings, session=FakeSession([FakeResponse(200, ["unexpected"])]))
    with pytest.raises(DALayerError) as exc_info:
        await client.get_proof(1, ENCODED)
    assert exc_info.value.status == 200


@pytest.mark.parametrize("body", [["unexpected"], "unexpected"])
async def test_non_object_body_uses_one_attempt(settings, body):
    session = FakeSession([FakeResponse(200, body), ready()])
    client = DALayerClient(settings, session=session)

    proof = await client.fetch_proof(7, ENCODED)

    assert proof.is_ready
    assert len(session.calls) == 2


async def test_any_error_counts_against_the_budget(settings):
    session = FakeSession([RuntimeError("boom"), ready()])
    client = DALayerClient(settings, session=session)

    proof = await client.fetch_proof(7, ENCODED)

    assert proof.payload_hex == "0xbb"
    assert len(session.calls) == 2


async def test_unexpected_error_is_reported_after_budget(settings):
    settings = settings.model_copy(update={"proof_retry_attempts": 2})
    client = DALayerClient(settings, session=FakeSession([RuntimeError("boom")] * 2))

    with pytest.raises(ProofRetrievalError) as exc_info:
        await client.fetch_proof(7, ENCODED)

    assert isinstance(exc_info.value.last_error, RuntimeError)


def record_sleeps(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr("flare_fdc_client.ecosystem.protocols.da_layer.asyncio.sleep", fake_sleep)
    return delays


async def test_retry_delay_between_attempts_only(settings, monkeypatch):
    delays = record_sleeps(monkeypatch)
    settings = settings.model_copy(
        update={"proof_poll_interval": 10, "proof_retry_attempts": 3, "proof_retry_delay": 20}
    )
    client = DALayerClient(settings, session=FakeSession([FakeResponse(502)] * 3))

    with pytest.raises(ProofRetrievalError):
        await client.fetch_proof(7, ENCODED)

    # no sleep after the last attempt
    assert delays == [20, 20]


async def test_poll_interval_between_pending_polls(settings, monkeypatch):
    delays = record_sleeps(monkeypatch)
    settings = settings.model_copy(update={"proof_poll_interval": 10, "proof_retry_delay": 20})
    client = DALayerClient(settings, session=FakeSession([pending(), pending(), ready()]))

    await client.fetch_proof(7, ENCODED)

    assert delays == [10, 10]


async def test_poll_and_retry_delays_combine(settings, monkeypatch):
    delays = record_sleeps(monkeypatch)
    settings = settings.model_copy(update={"proof_poll_interval": 10, "proof_retry_delay": 20})
    session = FakeSession([pending(), FakeResponse(500), pending(), ready()])
    client = DALayerClient(settings, session=session)

    await client.fetch_proof(7, ENCODED)

    assert delays == [10, 20, 10]
