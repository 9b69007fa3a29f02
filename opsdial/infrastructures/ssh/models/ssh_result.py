from enum import Enum
from pydantic import BaseModel


class ExecResult(BaseModel):
    """SSH 커맨드 실행 결과 모델 클래스"""
    command: str
    output: bytes = b""  # stdout + stderr
    exit_code: int = 0
    execution_time: float = 0.0  # in seconds

    @property
    def successful(self) -> bool:
        return self.exit_code == 0

    @property
    def output_text(self) -> str:
        return self.output.decode("utf-8", errors="replace")

    def __str__(self) -> str:
        """String representation of command result."""
        status = "Success" if self.successful else f"Failed (exit code: {self.exit_code})"
        return f"Command '{self.command}': {status}\nExecution time: {self.execution_time:.2f}s\noutput: {self.output_text}"


class TransferDirection(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"


class TransferResult(BaseModel):
    """파일 전송 결과 모델 클래스

    source/destination은 항상 채워지며 bytes_transferred는 복사된 바이트 수를 기록한다.
    복사가 중간에 실패하면 그때까지의 바이트 수가 남는다.
    """
    direction: TransferDirection
    source: str
    destination: str
    bytes_transferred: int = 0

    def __str__(self) -> str:
        return (
            f'TransferResult(direction: "{self.direction.value}", source: "{self.source}", '
            f'destination: "{self.destination}", bytes_transferred: {self.bytes_transferred})'
        )
