import pytest

from flare_fdc_client.common import (
    EncodingError,
    ProofRetrievalError,
    SubmissionError,
    abi_type_string,
    calculate_round_id,
    compact_json,
    load_abi,
    to_utf8_hex_string,
)

FIRST_ROUND_START = 1658430000


def test_round_id_uses_floor_division():
    assert calculate_round_id(FIRST_ROUND_START + 90 * 5 + 89, FIRST_ROUND_START, 90) == 5
    assert calculate_round_id(FIRST_ROUND_START + 90 * 6, FIRST_ROUND_START, 90) == 6
    assert calculate_round_id(FIRST_ROUND_START, FIRST_ROUND_START, 90) == 0


def test_round_id_is_deterministic():
    results = {calculate_round_id(1700000123, FIRST_ROUND_START, 90) for _ in range(5)}
    assert results == {(1700000123 - FIRST_ROUND_START) // 90}


@pytest.mark.parametrize("timestamp, duration", [(FIRST_ROUND_START - 1, 90), (FIRST_ROUND_START, 0)])
def test_round_id_rejects_invalid_input(timestamp, duration):
    with pytest.raises(ValueError):
        calculate_round_id(timestamp, FIRST_ROUND_START, duration)


def test_utf8_hex_string_is_padded_to_32_bytes():
    encoded = to_utf8_hex_string("Web2Json")
    assert encoded == "0x576562324a736f6e" + "00" * 24
    assert len(encoded) == 66


def test_utf8_hex_string_rejects_long_values():
    with pytest.raises(ValueError):
        to_utf8_hex_string("x" * 33)


def test_compact_json():
    assert compact_json({}) == "{}"
    assert compact_json(None) == "{}"
    assert compact_json({"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'
    assert compact_json('{"raw": true}') == '{"raw": true}'


def test_abi_type_string_expands_nested_tuples():
    component = {
        "type": "tuple[]",
        "components": [
            {"name": "name", "type": "string"},
            {"name": "inner", "type": "tuple", "components": [{"name": "x", "type": "uint256"}]},
        ],
    }
    assert abi_type_string(component) == "(string,(uint256))[]"


def test_load_abi_bundled_and_missing():
    abi = load_abi("Relay")
    assert any(entry["name"] == "isFinalized" for entry in abi)
    with pytest.raises(FileNotFoundError):
        load_abi("DoesNotExist")


def test_errors_carry_phase():
    assert EncodingError("bad", status=400).phase == "encoding"
    assert SubmissionError("reverted").phase == "submission"
    assert SubmissionError("reverted", phase="proof_submission").phase == "proof_submission"
    error = ProofRetrievalError(42, 10)
    assert error.attempts == 10
    assert "proof_retrieval" in str(error)
    assert "10 attempts" in str(error)
