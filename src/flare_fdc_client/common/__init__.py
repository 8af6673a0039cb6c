from .exceptions import (
    DALayerError,
    EncodingError,
    FdcError,
    FinalityTimeout,
    FlareError,
    FlareTxError,
    ProofNotReadyError,
    ProofRetrievalError,
    SubmissionError,
)
from .utils import (
    abi_signature,
    abi_type_string,
    calculate_round_id,
    compact_json,
    load_abi,
    to_utf8_hex_string,
)

__all__ = [
    "DALayerError",
    "EncodingError",
    "FdcError",
    "FinalityTimeout",
    "FlareError",
    "FlareTxError",
    "ProofNotReadyError",
    "ProofRetrievalError",
    "SubmissionError",
    "abi_signature",
    "abi_type_string",
    "calculate_round_id",
    "compact_json",
    "load_abi",
    "to_utf8_hex_string",
]
