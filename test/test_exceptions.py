from opsdial.core.exceptions import (
    ErrorCategory,
    ErrorCode,
    InvalidPortException,
    SSHConnectionException,
    TransferException,
    get_error_category,
)
from opsdial.infrastructures.ssh import TransferDirection, TransferResult


def test_error_categories():
    assert get_error_category(ErrorCode.INVALID_PORT.code) == ErrorCategory.GENERAL
    assert get_error_category(ErrorCode.SSH_AUTH_FAILED.code) == ErrorCategory.SSH
    assert get_error_category(ErrorCode.TRANSFER_FAILED.code) == ErrorCategory.TRANSFER
    assert get_error_category(ErrorCode.PROVISION_STEP_FAILED.code) == ErrorCategory.PROVISIONING


def test_message_includes_code_and_detail():
    error = SSHConnectionException(host="10.0.0.1", port=22, detail="Connection refused")

    assert str(error) == "[20000] SSH connection failed: Connection refused"
    assert error.to_dict() == {
        "error_code": 20000,
        "message": "SSH connection failed",
        "category": "2",
        "detail": "Connection refused",
    }
    assert error.to_log_dict()["context"] == {"host": "10.0.0.1", "port": 22}


def test_original_exception_is_logged():
    cause = ValueError("bad")
    error = InvalidPortException(port="x", original_exception=cause)

    assert error.to_log_dict()["original_error"] == {"type": "ValueError", "message": "bad"}
    assert error.context == {"port": "x"}


def test_transfer_exception_exposes_partial_result():
    result = TransferResult(
        direction=TransferDirection.UPLOAD,
        source="telegraf.zip",
        destination="/opt/telegraf.zip",
        bytes_transferred=4096,
    )
    error = TransferException(result=result, detail="broken pipe")

    assert error.bytes_transferred == 4096
    assert error.context["destination"] == "/opt/telegraf.zip"
    assert TransferException().bytes_transferred == 0
