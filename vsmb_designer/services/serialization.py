# vsmb_designer/services/serialization.py
"""
Model <-> text conversions for shared links and saved files.

Both paths wrap the model in the versioned envelope
`{"version": 1, "format": "vsmb", "model": {...}}` and go through one decode
step, `decode_payload`. Links are decoded leniently (shape check only) so a
link with a fixable problem still opens in the editor; files are decoded
strictly (full validation) and may also use the legacy bare-model shape.
"""
import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

import jsonschema

from ..core.machine_model import StateMachineModel
from ..core.model_parser import parse_model_dict, model_to_dict
from ..core.validation import ValidationError, validate_model
from ..utils.config import VSMB_FORMAT, VSMB_VERSION, SHARE_QUERY_PARAM, DEFAULT_SHARE_BASE_URL

logger = logging.getLogger(__name__)

MODEL_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["states", "transitions"],
    "properties": {
        "states": {"type": "array"},
        "transitions": {"type": "array"},
    },
}

ENVELOPE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["version", "format", "model"],
    "properties": {
        "version": {"const": VSMB_VERSION},
        "format": {"const": VSMB_FORMAT},
        "model": MODEL_SCHEMA,
    },
}


@dataclass(frozen=True)
class DecodeResult:
    """Tagged outcome of decoding an untrusted payload."""
    ok: bool
    model: Optional[StateMachineModel] = None
    reason: str = ""
    errors: List[ValidationError] = field(default_factory=list)

    @classmethod
    def failure(cls, reason: str, errors: Optional[List[ValidationError]] = None) -> 'DecodeResult':
        return cls(ok=False, reason=reason, errors=list(errors or []))


def _schema_error_to_validation_error(error: jsonschema.ValidationError) -> ValidationError:
    return ValidationError(".".join(map(str, error.absolute_path)), error.message)


def decode_payload(obj: Any, strict: bool = False, allow_legacy: bool = False) -> DecodeResult:
    """
    Turns a parsed JSON value into a model.

    Args:
        obj: The parsed JSON value.
        strict: Run the structural validator and reject invalid models.
        allow_legacy: Also accept a bare model object without the envelope.

    Returns:
        A DecodeResult. Never raises for malformed input.
    """
    if not isinstance(obj, dict):
        return DecodeResult.failure("Payload is not a JSON object.")

    try:
        jsonschema.validate(instance=obj, schema=ENVELOPE_SCHEMA)
        model_data = obj["model"]
    except jsonschema.ValidationError as envelope_error:
        if not allow_legacy or "model" in obj or "format" in obj:
            logger.debug(f"Envelope check failed: {envelope_error.message}")
            return DecodeResult.failure(
                f"Not a {VSMB_FORMAT} payload: {envelope_error.message}",
                [_schema_error_to_validation_error(envelope_error)],
            )
        try:
            jsonschema.validate(instance=obj, schema=MODEL_SCHEMA)
        except jsonschema.ValidationError as legacy_error:
            return DecodeResult.failure(
                f"Not a state machine model: {legacy_error.message}",
                [_schema_error_to_validation_error(legacy_error)],
            )
        logger.info("Decoding legacy bare-model payload.")
        model_data = obj

    model = parse_model_dict(model_data)

    if strict:
        result = validate_model(model)
        if not result.valid:
            return DecodeResult.failure(result.first_error.message, result.errors)

    return DecodeResult(ok=True, model=model)


def build_file_payload(model: StateMachineModel) -> Dict[str, Any]:
    """The versioned envelope written to files and links."""
    return {"version": VSMB_VERSION, "format": VSMB_FORMAT, "model": model_to_dict(model)}


def dump_file_payload(model: StateMachineModel) -> str:
    return json.dumps(build_file_payload(model), indent=2, ensure_ascii=False) + "\n"


def parse_file_payload(obj: Any) -> Optional[StateMachineModel]:
    """Strict file decode: envelope or legacy shape, and the model must validate."""
    result = decode_payload(obj, strict=True, allow_legacy=True)
    if not result.ok:
        logger.warning(f"Rejected file payload: {result.reason}")
    return result.model


def encode_state(model: StateMachineModel) -> str:
    """
    Encodes the model for a shared link: compact envelope JSON, UTF-8,
    then URL-safe base64 with the padding stripped.
    """
    text = json.dumps(build_file_payload(model), separators=(",", ":"), ensure_ascii=False)
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def decode_state(encoded: str) -> Optional[StateMachineModel]:
    """
    Decodes a shared-link string. Accepts URL-safe or standard base64 with
    or without padding. Returns None on any failure.
    """
    if not isinstance(encoded, str) or not encoded.strip():
        return None
    # A '+' from a standard alphabet link turns into a space in query strings
    text = encoded.strip().replace(" ", "+").replace("+", "-").replace("/", "_")
    text += "=" * (-len(text) % 4)
    try:
        raw = base64.b64decode(text, altchars=b"-_", validate=True)
        obj = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError, ValueError) as e:
        logger.warning(f"Could not decode shared state: {e}")
        return None

    result = decode_payload(obj, strict=False, allow_legacy=False)
    if not result.ok:
        logger.warning(f"Shared state rejected: {result.reason}")
    return result.model


def share_url(model: StateMachineModel, base_url: str = DEFAULT_SHARE_BASE_URL) -> str:
    """Returns `base_url` with `?state=<encoded>` set, keeping any other query parameters."""
    parts = urlsplit(base_url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != SHARE_QUERY_PARAM]
    query.append((SHARE_QUERY_PARAM, encode_state(model)))
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", urlencode(query), parts.fragment))


def state_from_url(url: str) -> Optional[StateMachineModel]:
    """Extracts and decodes the `state` query parameter of a shared link."""
    params = dict(parse_qsl(urlsplit(url).query, keep_blank_values=True))
    encoded = params.get(SHARE_QUERY_PARAM)
    if not encoded:
        logger.info(f"No '{SHARE_QUERY_PARAM}' parameter in URL.")
        return None
    return decode_state(encoded)
