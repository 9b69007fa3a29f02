"""커스텀 예외 클래스 정의

예외 계층도:
    BaseAppException
    |-- GeneralException (일반 예외)
    |   |-- ValidationException
    |   |   |-- InvalidHostNameException
    |   |   |-- InvalidPortException
    |   |   +-- HostLineFormatException
    |   +-- HostFileException
    |-- SSHException (SSH 예외)
    |   |-- SSHConnectionException
    |   |   +-- SSHAuthException
    |   |-- SSHNotConnectedException
    |   |-- CredentialException (인증 정보)
    |   |   |-- CredentialReadException
    |   |   +-- CredentialParseException
    |   +-- SSHChannelException
    |       +-- SSHCommandTimeoutException
    |-- TransferException (파일 전송 예외)
    |   |-- LocalFileException
    |   +-- RemoteFileException
    +-- ProvisioningException (설치 단계 예외)
"""

from typing import Optional, Dict, Any, TYPE_CHECKING
from opsdial.core.exceptions.error_codes import ErrorCode, get_error_category, ErrorCategory

if TYPE_CHECKING:
    from opsdial.infrastructures.ssh.models.ssh_result import TransferResult


class BaseAppException(Exception):
    """Base application exception. All custom exceptions inherit from this."""

    def __init__(
        self,
        error_code: ErrorCode,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.error_code = error_code
        self.detail = detail
        self.context = context or {}
        self.original_exception = original_exception

        message = error_code.message
        if detail:
            message = f"{message}: {detail}"

        super().__init__(message)

    @property
    def code(self) -> int:
        return self.error_code.code

    @property
    def category(self) -> ErrorCategory:
        return get_error_category(self.code)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for reporting"""
        result = {
            "error_code": self.code,
            "message": self.error_code.message,
            "category": self.category.value,
        }
        if self.detail:
            result["detail"] = self.detail
        return result

    def to_log_dict(self) -> Dict[str, Any]:
        """Convert to logging dictionary with more information"""
        log_data = self.to_dict()
        if self.context:
            log_data["context"] = self.context
        if self.original_exception:
            log_data["original_error"] = {
                "type": type(self.original_exception).__name__,
                "message": str(self.original_exception),
            }
        return log_data

    def __str__(self) -> str:
        return f"[{self.code}] {self.error_code.message}" + (
            f": {self.detail}" if self.detail else ""
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"code={self.code}, "
            f"message='{self.error_code.message}', "
            f"detail='{self.detail}'"
            f")"
        )


# General Exceptions (1XXX)
class GeneralException(BaseAppException):
    """General exception"""
    pass


class ValidationException(GeneralException):
    """Validation exception"""
    def __init__(
        self,
        detail: Optional[str] = None,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        **kwargs
    ):
        if field and not detail:
            detail = f"'{field}' field validation failed"
        super().__init__(error_code, detail=detail, **kwargs)


class InvalidHostNameException(ValidationException):
    """Host address is empty"""
    def __init__(self, detail: Optional[str] = None, **kwargs):
        super().__init__(detail=detail, field="address", error_code=ErrorCode.INVALID_HOST_NAME, **kwargs)


class InvalidPortException(ValidationException):
    """Port is not an integer in 0 ~ 65535"""
    def __init__(self, port: Any = None, detail: Optional[str] = None, **kwargs):
        if detail is None and port is not None:
            detail = f"got {port!r}"
        super().__init__(
            detail=detail,
            field="port",
            error_code=ErrorCode.INVALID_PORT,
            context={"port": port},
            **kwargs
        )


class HostLineFormatException(ValidationException):
    """Host list line does not have the expected fields"""
    def __init__(
        self,
        line_number: Optional[int] = None,
        expected_fields: Optional[int] = None,
        actual_fields: Optional[int] = None,
        **kwargs
    ):
        detail = None
        if expected_fields is not None and actual_fields is not None:
            detail = f"expected {expected_fields} fields, got {actual_fields}"
        super().__init__(
            detail=detail,
            error_code=ErrorCode.HOST_LINE_FORMAT_ERROR,
            context={"line_number": line_number},
            **kwargs
        )


class HostFileException(GeneralException):
    """Host list file could not be opened"""
    def __init__(self, path: Optional[str] = None, detail: Optional[str] = None, **kwargs):
        context = {}
        if path:
            context["path"] = path
        super().__init__(ErrorCode.HOST_FILE_OPEN_FAILED, detail=detail, context=context, **kwargs)


# SSH Exceptions (2XXX)
class SSHException(BaseAppException):
    """SSH related base exception"""
    pass


class SSHConnectionException(SSHException):
    """SSH connection exception"""
    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        detail: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.SSH_CONNECTION_FAILED,
        **kwargs
    ):
        context = {}
        if host:
            context["host"] = host
        if port:
            context["port"] = port
        super().__init__(error_code, detail=detail, context=context, **kwargs)


class SSHAuthException(SSHConnectionException):
    """SSH authentication rejected by the remote host"""
    def __init__(
        self,
        username: Optional[str] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        detail: Optional[str] = None,
        **kwargs
    ):
        super().__init__(host=host, port=port, detail=detail, error_code=ErrorCode.SSH_AUTH_FAILED, **kwargs)
        if username:
            self.context["username"] = username


class SSHNotConnectedException(SSHException):
    """Operation attempted on a session that is not connected"""
    def __init__(self, operation: Optional[str] = None, detail: Optional[str] = None, **kwargs):
        context = {}
        if operation:
            context["operation"] = operation
        super().__init__(ErrorCode.SSH_NOT_CONNECTED, detail=detail, context=context, **kwargs)


class CredentialException(SSHException):
    """Credential resolution exception"""
    def __init__(
        self,
        key_file: Optional[str] = None,
        detail: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.SSH_KEY_READ_FAILED,
        **kwargs
    ):
        context = {}
        if key_file:
            context["key_file"] = key_file
        super().__init__(error_code, detail=detail, context=context, **kwargs)


class CredentialReadException(CredentialException):
    """Private key file is missing or unreadable"""
    def __init__(self, key_file: Optional[str] = None, detail: Optional[str] = None, **kwargs):
        super().__init__(key_file=key_file, detail=detail, error_code=ErrorCode.SSH_KEY_READ_FAILED, **kwargs)


class CredentialParseException(CredentialException):
    """Private key file is not a valid private key"""
    def __init__(self, key_file: Optional[str] = None, detail: Optional[str] = None, **kwargs):
        super().__init__(key_file=key_file, detail=detail, error_code=ErrorCode.SSH_KEY_PARSE_FAILED, **kwargs)


class SSHChannelException(SSHException):
    """Command or SFTP channel failure, distinct from a non-zero remote exit"""
    def __init__(
        self,
        command: Optional[str] = None,
        output: bytes = b"",
        detail: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.SSH_CHANNEL_ERROR,
        **kwargs
    ):
        self.command = command
        self.output = output
        context = {}
        if command:
            context["command"] = command
        super().__init__(error_code, detail=detail, context=context, **kwargs)


class SSHCommandTimeoutException(SSHChannelException):
    """SSH command did not finish within the exec timeout"""
    def __init__(
        self,
        command: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        output: bytes = b"",
        **kwargs
    ):
        detail = f"Command timed out ({timeout_seconds}s)" if timeout_seconds else None
        super().__init__(
            command=command,
            output=output,
            detail=detail,
            error_code=ErrorCode.SSH_COMMAND_TIMEOUT,
            **kwargs
        )
        if timeout_seconds:
            self.context["timeout_seconds"] = timeout_seconds


# Transfer Exceptions (3XXX)
class TransferException(BaseAppException):
    """File transfer exception carrying the (partial) transfer result"""
    def __init__(
        self,
        result: Optional["TransferResult"] = None,
        detail: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.TRANSFER_FAILED,
        **kwargs
    ):
        self.result = result
        context = {}
        if result is not None:
            context["direction"] = result.direction.value
            context["source"] = result.source
            context["destination"] = result.destination
            context["bytes_transferred"] = result.bytes_transferred
        super().__init__(error_code, detail=detail, context=context, **kwargs)

    @property
    def bytes_transferred(self) -> int:
        return self.result.bytes_transferred if self.result is not None else 0


class LocalFileException(TransferException):
    """Local side of a transfer could not be opened or created"""
    def __init__(self, result: Optional["TransferResult"] = None, path: Optional[str] = None,
                 detail: Optional[str] = None, **kwargs):
        super().__init__(result=result, detail=detail, error_code=ErrorCode.LOCAL_FILE_ERROR, **kwargs)
        if path:
            self.context["path"] = path


class RemoteFileException(TransferException):
    """Remote side of a transfer could not be opened or created"""
    def __init__(self, result: Optional["TransferResult"] = None, path: Optional[str] = None,
                 detail: Optional[str] = None, **kwargs):
        super().__init__(result=result, detail=detail, error_code=ErrorCode.REMOTE_FILE_ERROR, **kwargs)
        if path:
            self.context["path"] = path


# Provisioning Exceptions (4XXX)
class ProvisioningException(BaseAppException):
    """A provisioning step ended unsuccessfully"""
    def __init__(
        self,
        step: Optional[str] = None,
        host: Optional[str] = None,
        exit_code: Optional[int] = None,
        detail: Optional[str] = None,
        **kwargs
    ):
        context = {}
        if step:
            context["step"] = step
        if host:
            context["host"] = host
        if exit_code is not None:
            context["exit_code"] = exit_code
        super().__init__(ErrorCode.PROVISION_STEP_FAILED, detail=detail, context=context, **kwargs)
