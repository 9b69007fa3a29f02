"""Error code system

Error code structure (5 digits):
- 1st digit: Category (1=General, 2=SSH, 3=Transfer, 4=Provisioning)
- 2nd-3rd digits: Sub-category
- 4th-5th digits: Specific error

Example: 20001 = SSH(2) Connection(00) Timeout(01)
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """Error categories"""
    GENERAL = "1"
    SSH = "2"
    TRANSFER = "3"
    PROVISIONING = "4"


class ErrorCode(Enum):
    """Error code definitions. Each code is (code, message) tuple."""

    # 1XXX: General Errors
    UNKNOWN_ERROR = (10099, "Unknown error occurred")

    VALIDATION_ERROR = (12000, "Validation failed")
    INVALID_HOST_NAME = (12001, "Invalid parameters: hostname is empty")
    INVALID_PORT = (12002, "Invalid parameters: port must be range 0 ~ 65535")
    HOST_LINE_FORMAT_ERROR = (12003, "Invalid host line format")

    HOST_FILE_OPEN_FAILED = (13000, "Host file could not be opened")
    PACKAGE_NOT_FOUND = (13001, "Install package not found")

    # 2XXX: SSH Errors
    SSH_CONNECTION_FAILED = (20000, "SSH connection failed")
    SSH_CONNECTION_TIMEOUT = (20001, "SSH connection timeout")
    SSH_HOST_UNREACHABLE = (20002, "SSH host unreachable")
    SSH_HOST_UNRESOLVED = (20003, "SSH host name could not be resolved")
    SSH_NOT_CONNECTED = (20004, "Not connected to SSH")
    SSH_HANDSHAKE_FAILED = (20005, "SSH handshake failed")

    SSH_AUTH_FAILED = (21000, "SSH authentication failed")
    SSH_KEY_READ_FAILED = (21001, "SSH private key could not be read")
    SSH_KEY_PARSE_FAILED = (21002, "SSH private key could not be parsed")

    SSH_COMMAND_TIMEOUT = (22001, "SSH command timeout")
    SSH_CHANNEL_ERROR = (22003, "SSH channel error")
    SSH_EXIT_STATUS_MISSING = (22004, "Remote command ended without exit status")
    SSH_SFTP_CHANNEL_FAILED = (22005, "SFTP sub-channel could not be opened")

    # 3XXX: Transfer Errors
    LOCAL_FILE_ERROR = (30000, "Local file error")
    REMOTE_FILE_ERROR = (30001, "Remote file error")
    TRANSFER_FAILED = (30002, "File transfer failed")

    # 4XXX: Provisioning Errors
    PROVISION_STEP_FAILED = (40000, "Provisioning step failed")

    @property
    def code(self) -> int:
        """Return error code"""
        return self.value[0]

    @property
    def message(self) -> str:
        """Return error message"""
        return self.value[1]


ERROR_CATEGORY_MAP = {
    ErrorCategory.GENERAL: range(10000, 20000),
    ErrorCategory.SSH: range(20000, 30000),
    ErrorCategory.TRANSFER: range(30000, 40000),
    ErrorCategory.PROVISIONING: range(40000, 50000),
}


def get_error_category(error_code: int) -> ErrorCategory:
    """Get category from error code"""
    for category, code_range in ERROR_CATEGORY_MAP.items():
        if error_code in code_range:
            return category
    return ErrorCategory.GENERAL
