"""Exception handling package for the application

This package provides:
- Error codes (error_codes.py)
- Custom exception classes (base.py)
"""

# Error codes
from opsdial.core.exceptions.error_codes import (
    ErrorCode,
    ErrorCategory,
    get_error_category,
)

# Base exceptions
from opsdial.core.exceptions.base import (
    BaseAppException,
    GeneralException,
    ValidationException,
    InvalidHostNameException,
    InvalidPortException,
    HostLineFormatException,
    HostFileException,
    SSHException,
    SSHConnectionException,
    SSHAuthException,
    SSHNotConnectedException,
    CredentialException,
    CredentialReadException,
    CredentialParseException,
    SSHChannelException,
    SSHCommandTimeoutException,
    TransferException,
    LocalFileException,
    RemoteFileException,
    ProvisioningException,
)

__all__ = [
    # Error codes
    "ErrorCode",
    "ErrorCategory",
    "get_error_category",
    # Base exceptions
    "BaseAppException",
    "GeneralException",
    "ValidationException",
    "InvalidHostNameException",
    "InvalidPortException",
    "HostLineFormatException",
    "HostFileException",
    "SSHException",
    "SSHConnectionException",
    "SSHAuthException",
    "SSHNotConnectedException",
    "CredentialException",
    "CredentialReadException",
    "CredentialParseException",
    "SSHChannelException",
    "SSHCommandTimeoutException",
    "TransferException",
    "LocalFileException",
    "RemoteFileException",
    "ProvisioningException",
]
