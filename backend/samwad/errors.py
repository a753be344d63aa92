"""
Samwad error types.

Socket handlers absorb these after logging; HTTP routes translate them to
status codes.
"""
from typing import Any, Optional


class PortalError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class RecordStoreError(PortalError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("record_store_error", message, details)


class UploadRejected(PortalError):
    def __init__(self, message: str):
        super().__init__("upload_rejected", message)


class RegistrationTimeout(PortalError):
    def __init__(self, message: str):
        super().__init__("registration_timeout", message)
