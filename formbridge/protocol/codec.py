"""JSON encoding for messages crossing a context boundary."""
import logging
from typing import TypeVar, Union

from pydantic import BaseModel, ValidationError

from ..core.errors import ProtocolError
from .messages import Envelope

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def encode(envelope: Envelope) -> str:
    """Serialize an envelope to JSON text."""
    return envelope.model_dump_json(by_alias=True)


def decode(data: Union[str, bytes]) -> Envelope:
    """Parse JSON text into an envelope.

    Raises:
        ProtocolError: If the text is not a valid envelope.
    """
    try:
        return Envelope.model_validate_json(data)
    except ValidationError as e:
        raise ProtocolError(f"Malformed message: {e.error_count()} validation errors") from e


def read_payload(envelope: Envelope, model: type[PayloadT]) -> PayloadT:
    """Validate an envelope's payload against a payload model.

    Raises:
        ProtocolError: If the payload does not fit the model.
    """
    try:
        return model.model_validate(envelope.payload)
    except ValidationError as e:
        logger.debug(f"Bad {envelope.type.value} payload: {e.error_count()} errors")
        raise ProtocolError(f"Invalid {envelope.type.value} payload") from e
