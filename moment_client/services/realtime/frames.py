import json

from pydantic import ValidationError

from moment_client.core.exceptions import ProtocolError
from moment_client.schemas import InboundFrame, MatchFrame, SessionEndFrame

INBOUND_FRAME_TYPES: dict[str, type[MatchFrame] | type[SessionEndFrame]] = {
    "match": MatchFrame,
    "session_end": SessionEndFrame,
}


def decode_inbound_frame(text: str) -> InboundFrame:
    """
    Decode a realtime text frame.

    The ``type`` discriminator is read first; the frame is then validated
    against the schema registered for that type.

    Args:
        text: Raw text frame

    Returns:
        InboundFrame: MatchFrame or SessionEndFrame

    Raises:
        ProtocolError: If the frame is not JSON, has an unknown type or does not
            match its schema
    """
    try:
        payload = json.loads(text)
    except ValueError as e:
        raise ProtocolError("Frame is not valid JSON", e)

    frame_type = payload.get("type") if isinstance(payload, dict) else None
    model = INBOUND_FRAME_TYPES.get(frame_type) if isinstance(frame_type, str) else None

    if model is None:
        raise ProtocolError(f"Unknown message type: {frame_type!r}")

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ProtocolError(f"Malformed {frame_type} frame", e)
