"""Exception hierarchy for X-Ray middleware errors."""


class XRayMiddlewareError(Exception):
    """Base exception for all X-Ray middleware errors.

    Catching this exception will catch every error raised by the
    fastapi-xray-middleware package.

    Example:
        try:
            traced.attach_metadata("response", body)
        except XRayMiddlewareError as e:
            logger.error(f"Tracing failed: {e}")
    """


class SegmentMetadataError(XRayMiddlewareError):
    """Raised when a value cannot be attached to a segment as metadata.

    The tracing middleware catches this error, logs it and carries on;
    it never aborts the response or prevents the segment from closing.

    Example:
        SegmentMetadataError("Failed to add metadata 'response' to segment 'api'")
    """
