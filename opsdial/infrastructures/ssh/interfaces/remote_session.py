from abc import ABC, abstractmethod
from typing import Union
from pathlib import Path

from opsdial.infrastructures.ssh.models.connection import SessionState
from opsdial.infrastructures.ssh.models.ssh_result import ExecResult, TransferResult


class RemoteSessionInterface(ABC):
    """원격 세션 인터페이스 (SSH 커맨드 실행 + SFTP 파일 전송)"""

    @property
    @abstractmethod
    def state(self) -> SessionState:
        """현재 세션 상태"""
        pass

    @abstractmethod
    def connect(self) -> None:
        """SSH 연결 함수. 이미 연결되어 있으면 아무것도 하지 않는다.

        Raises:
            SSHConnectionException: 연결/핸드셰이크 실패 시
            SSHAuthException: 인증 거부 시
            SSHNotConnectedException: 이미 종료된 세션일 때
        """
        pass

    @abstractmethod
    def exec(self, command: str) -> ExecResult:
        """원격 서버에 커맨드 실행 함수

        Args:
            command: 실행할 커맨드

        Returns:
            ExecResult: 커맨드 실행 결과 (output, exit code)

        Raises:
            SSHNotConnectedException: 연결되지 않은 경우
            SSHChannelException: 커맨드 채널 에러 발생 시
        """
        pass

    @abstractmethod
    def upload(self, local_path: Union[str, Path], remote_path: str) -> TransferResult:
        """로컬 파일을 원격 서버에 업로드합니다.

        Raises:
            LocalFileException, RemoteFileException, TransferException
        """
        pass

    @abstractmethod
    def download(self, remote_path: str, local_path: Union[str, Path]) -> TransferResult:
        """원격 서버에서 파일을 다운로드합니다.

        Raises:
            LocalFileException, RemoteFileException, TransferException
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """SFTP, SSH 순서로 연결 종료. 여러 번 호출해도 안전함"""
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        """연결 활성 여부 체크 함수"""
        pass
