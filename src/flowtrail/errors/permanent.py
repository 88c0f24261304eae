"""Errors that no retry will fix."""

from __future__ import annotations

from flowtrail.error_codes import ErrorCode
from flowtrail.errors.base import FlowtrailError


class PermanentError(FlowtrailError):
    """The record can never be delivered as it stands."""

    code = 102
    default_error_code = ErrorCode.USER_CODE_ERROR


class ConfigurationError(PermanentError):
    """Invalid recorder configuration.

    Raised during construction when a required setting is missing or a
    value cannot be parsed. Never handled by a failure policy: a recorder
    that fails with this error must not be used.

    Attributes:
        setting: Name of the offending setting, when one is to blame
    """

    code = 104
    default_error_code = ErrorCode.CONFIGURATION_INVALID

    def __init__(
        self,
        message: str,
        *,
        setting: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.setting = setting


class SerializationError(PermanentError):
    """A request envelope could not be encoded as JSON."""

    code = 106
    default_error_code = ErrorCode.SERIALIZATION_FAILED
