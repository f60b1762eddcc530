"""
Checkins Backend — Request Payload Validator
==============================================

What:  Bounds and parses the raw body of POST /v1/checkins.
Why:   Oversized bodies must be rejected before any JSON parsing, and with a
       different error (413) than bodies that do not parse (400).
How:   1. Declared Content-Length checked before reading
       2. Body streamed and counted; reading stops once the ceiling is passed
       3. Strict pydantic validation into CheckinRequest
Who:   `read_checkin_request` is the FastAPI dependency used by the POST route.
"""

import logging
from typing import Optional

from fastapi import Request
from pydantic import ValidationError as PydanticValidationError

from checkins.exceptions import MalformedRequestError, PayloadTooLargeError
from checkins.schemas.checkin import CheckinRequest

logger = logging.getLogger(__name__)

# 16 KiB; a body of exactly this many bytes is accepted
MAX_PAYLOAD_BYTES = 16 * 1024


class PayloadValidator:
    """
    Size ceiling and strict schema validation for check-in bodies.

    Args:
        max_bytes: Payload ceiling (inclusive). Overridable in tests.
    """

    def __init__(self, max_bytes: int = MAX_PAYLOAD_BYTES):
        self.max_bytes = max_bytes

    def validate_size(self, content_length: Optional[int], actual_size: Optional[int] = None) -> None:
        """
        Reject bodies over the ceiling.

        Args:
            content_length: Value from the Content-Length header (may be None)
            actual_size: Bytes read so far (may be None before reading)

        Raises:
            PayloadTooLargeError if either value exceeds max_bytes
        """
        if content_length is not None and content_length > self.max_bytes:
            raise PayloadTooLargeError(self.max_bytes, content_length, context={"source": "header"})

        if actual_size is not None and actual_size > self.max_bytes:
            raise PayloadTooLargeError(self.max_bytes, actual_size, context={"source": "body"})

    def parse(self, content: bytes) -> CheckinRequest:
        """
        Deserialize a body into CheckinRequest, strictly.

        Raises:
            MalformedRequestError: invalid JSON, missing or mistyped field
        """
        try:
            return CheckinRequest.model_validate_json(content)
        except PydanticValidationError as e:
            fields = sorted(
                {".".join(str(part) for part in err["loc"]) for err in e.errors() if err["loc"]}
            )
            logger.debug("Rejected check-in payload: %s", e.errors())
            if not fields:
                raise MalformedRequestError(
                    message="Request body is not a valid JSON object",
                    context={"errors": e.error_count()},
                )
            raise MalformedRequestError(
                message="Request body does not match the check-in schema",
                fields=fields,
                context={"errors": e.error_count()},
            )

    async def read_body(self, request: Request) -> bytes:
        """
        Read the request body without ever holding more than the ceiling.

        Raises:
            PayloadTooLargeError: declared or actual size over max_bytes
            MalformedRequestError: unparseable Content-Length header
        """
        declared = request.headers.get("content-length")
        content_length: Optional[int] = None
        if declared is not None:
            try:
                content_length = int(declared)
            except ValueError:
                raise MalformedRequestError(
                    message="Invalid Content-Length header",
                    context={"content_length": declared},
                )
        self.validate_size(content_length)

        body = bytearray()
        async for chunk in request.stream():
            body.extend(chunk)
            self.validate_size(None, len(body))
        return bytes(body)


payload_validator = PayloadValidator()


async def read_checkin_request(request: Request) -> CheckinRequest:
    """FastAPI dependency: bounded read, then strict parse."""
    content = await payload_validator.read_body(request)
    return payload_validator.parse(content)
