import socket
import time
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, Optional, Union

import paramiko

from opsdial.core.config import settings
from opsdial.core.exceptions import (
    ErrorCode,
    SSHAuthException,
    SSHChannelException,
    SSHCommandTimeoutException,
    SSHConnectionException,
    SSHNotConnectedException,
    LocalFileException,
    RemoteFileException,
    TransferException,
)
from opsdial.core.logger import logger
from opsdial.infrastructures.ssh.implements.auth_resolver import AuthResolver
from opsdial.infrastructures.ssh.interfaces.remote_session import RemoteSessionInterface
from opsdial.infrastructures.ssh.models.connection import AuthConfig, HostRecord, SessionState
from opsdial.infrastructures.ssh.models.ssh_result import ExecResult, TransferDirection, TransferResult
from opsdial.infrastructures.ssh.utils.transfer_utils import iter_copy

RECV_BUFFER_SIZE = 32768


class RemoteSession(RemoteSessionInterface):
    """단일 호스트에 대한 원격 세션 구현체 Using Paramiko

    SSH 클라이언트는 connect()에서, SFTP 클라이언트는 첫 업로드/다운로드에서 한 번만 생성되어
    세션이 닫힐 때까지 재사용된다. 커맨드 채널은 exec() 호출마다 새로 열고 닫는다.
    """

    def __init__(
        self,
        host: HostRecord,
        auth_config: AuthConfig,
        resolver: Optional[AuthResolver] = None,
        exec_timeout: Optional[float] = settings.SSH_EXEC_TIMEOUT,
        chunk_size: int = settings.SSH_TRANSFER_CHUNK_SIZE,
        client_factory: Callable[[], paramiko.SSHClient] = paramiko.SSHClient,
    ):
        """원격 세션 초기화

        Args:
            host: 접속 대상 호스트
            auth_config: 인증 설정 (비어 있는 값은 connect 시점에 기본값으로 채워짐)
            resolver: 인증 방식 변환기
            exec_timeout: 커맨드 실행 타임아웃 (None이면 무제한)
            chunk_size: 파일 전송 청크 크기
            client_factory: SSH 클라이언트 생성 함수
        """
        self._host = host
        self._auth_config = auth_config
        self._resolver = resolver or AuthResolver()
        self._exec_timeout = exec_timeout
        self._chunk_size = chunk_size
        self._client_factory = client_factory

        self._client: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None
        self._state = SessionState.DISCONNECTED
        self._port: Optional[int] = None
        self._username: Optional[str] = None

    @property
    def host(self) -> HostRecord:
        return self._host

    @property
    def state(self) -> SessionState:
        return self._state

    def __enter__(self) -> "RemoteSession":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def connect(self) -> None:
        """SSH 연결 함수

        Raises:
            SSHNotConnectedException: 이미 종료된 세션일 때
            CredentialReadException, CredentialParseException: 인증 정보 변환 실패 시
            SSHAuthException: 인증 거부 시
            SSHConnectionException: 이름 해석, TCP 연결, 핸드셰이크 실패 시
        """
        if self._state == SessionState.CLOSED:
            raise SSHNotConnectedException(
                operation="connect",
                detail="Session is closed, create a new session"
            )
        if self._client is not None:
            logger.info(f"[SSH] Already connected to {self._host.address}:{self._port}")
            return

        auth = self._resolver.resolve(self._auth_config)
        address = self._host.address
        port = self._host.port or settings.SSH_DEFAULT_PORT

        client = self._client_factory()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        try:
            logger.info(f"[SSH] Connecting {address}:{port} as {auth.username} ({auth.kind})")
            client.connect(hostname=address, port=port, **auth.connect_kwargs())

        except paramiko.AuthenticationException as e:
            self._discard_client(client)
            logger.error(f"[SSH] {auth.username}@{address} authentication rejected")
            raise SSHAuthException(
                username=auth.username,
                host=address,
                port=port,
                detail=str(e),
                original_exception=e
            )

        except paramiko.SSHException as e:
            self._discard_client(client)
            logger.error(f"[SSH] {address}:{port} handshake failed: {e}")
            raise SSHConnectionException(
                host=address,
                port=port,
                error_code=ErrorCode.SSH_HANDSHAKE_FAILED,
                detail=str(e),
                original_exception=e
            )

        except socket.gaierror as e:
            self._discard_client(client)
            logger.error(f"[SSH] {address} could not be resolved: {e}")
            raise SSHConnectionException(
                host=address,
                port=port,
                error_code=ErrorCode.SSH_HOST_UNRESOLVED,
                detail=str(e),
                original_exception=e
            )

        except socket.timeout as e:
            self._discard_client(client)
            logger.error(f"[SSH] {address}:{port} connection timeout")
            raise SSHConnectionException(
                host=address,
                port=port,
                error_code=ErrorCode.SSH_CONNECTION_TIMEOUT,
                detail=f"Connection timed out after {auth.timeout}s",
                original_exception=e
            )

        except OSError as e:
            self._discard_client(client)
            logger.error(f"[SSH] {address}:{port} unreachable: {e}")
            raise SSHConnectionException(
                host=address,
                port=port,
                error_code=ErrorCode.SSH_HOST_UNREACHABLE,
                detail=str(e),
                original_exception=e
            )

        self._client = client
        self._port = port
        self._username = auth.username
        self._state = SessionState.CONNECTED
        logger.info(f"[SSH] Connected to {address}:{port}")

    def exec(self, command: str) -> ExecResult:
        """SSH 명령 실행

        stdout/stderr를 하나의 버퍼로 합쳐 수집한다. 원격 커맨드의 non-zero 종료는
        exit_code로 돌려주고, 채널 자체의 실패만 예외로 올린다.
        """
        self._require_connected("exec")

        transport = self._client.get_transport()
        if transport is None or not transport.is_active():
            raise SSHChannelException(command=command, detail="Transport is no longer active")

        start_time = time.perf_counter()
        logger.debug(f"[SSH] Executing command: {command} with timeout: {self._exec_timeout}")

        try:
            channel = transport.open_session()
        except (paramiko.SSHException, OSError) as e:
            logger.error(f"[SSH] Failed to open command channel: {e}")
            raise SSHChannelException(command=command, detail=str(e), original_exception=e)

        chunks = []
        try:
            channel.set_combine_stderr(True)
            channel.settimeout(self._exec_timeout)
            channel.exec_command(command)
            while True:
                data = channel.recv(RECV_BUFFER_SIZE)
                if not data:
                    break
                chunks.append(data)
            exit_code = channel.recv_exit_status()

        except socket.timeout as e:
            logger.error(f"[SSH] Command timed out after {self._exec_timeout} seconds: {command}")
            raise SSHCommandTimeoutException(
                command=command,
                timeout_seconds=self._exec_timeout,
                output=b"".join(chunks),
                original_exception=e
            )

        except (paramiko.SSHException, OSError) as e:
            logger.error(f"[SSH] Command channel failed: {command} - {e}")
            raise SSHChannelException(
                command=command,
                output=b"".join(chunks),
                detail=str(e),
                original_exception=e
            )

        finally:
            channel.close()

        output = b"".join(chunks)
        if exit_code < 0:
            # 시그널로 종료되었거나 연결이 끊겨 exit-status가 오지 않은 경우
            raise SSHChannelException(
                command=command,
                output=output,
                error_code=ErrorCode.SSH_EXIT_STATUS_MISSING
            )

        executed_time = time.perf_counter() - start_time
        if exit_code == 0:
            logger.info(f"[SSH] Command executed: exit_code={exit_code}, executed_time={executed_time:.5f}s")
        else:
            logger.warning(f"[SSH] Command executed: exit_code={exit_code}, executed_time={executed_time:.5f}s")

        return ExecResult(
            command=command,
            output=output,
            exit_code=exit_code,
            execution_time=executed_time
        )

    def upload(self, local_path: Union[str, Path], remote_path: str) -> TransferResult:
        """로컬 파일을 원격 서버에 업로드합니다.

        Args:
            local_path: 로컬 파일 경로
            remote_path: 원격 서버의 대상 경로

        Raises:
            LocalFileException: 로컬 파일을 열 수 없을 때
            RemoteFileException: 원격 파일을 생성할 수 없을 때
            TransferException: 복사 도중 실패 시 (부분 전송 바이트 수 포함)
        """
        self._require_connected("upload")
        result = TransferResult(
            direction=TransferDirection.UPLOAD,
            source=str(local_path),
            destination=remote_path
        )
        sftp = self._ensure_sftp()

        try:
            local_file = open(local_path, "rb")
        except OSError as e:
            logger.error(f"[SFTP] Cannot open local file {local_path}: {e}")
            raise LocalFileException(result=result, path=str(local_path), detail=str(e), original_exception=e)

        with local_file:
            try:
                remote_file = sftp.open(remote_path, "wb")
            except (OSError, paramiko.SSHException) as e:
                logger.error(f"[SFTP] Cannot create remote file {remote_path}: {e}")
                raise RemoteFileException(result=result, path=remote_path, detail=str(e), original_exception=e)

            self._copy(local_file, remote_file, result, remote_file)

        logger.info(f"[SFTP] File uploaded: {local_path} -> {remote_path} ({result.bytes_transferred} bytes)")
        return result

    def download(self, remote_path: str, local_path: Union[str, Path]) -> TransferResult:
        """원격 서버에서 파일을 다운로드합니다.

        Args:
            remote_path: 원격 서버의 파일 경로
            local_path: 로컬 대상 경로 (존재하면 덮어씀)

        Raises:
            LocalFileException: 로컬 파일을 생성할 수 없을 때
            RemoteFileException: 원격 파일을 열 수 없을 때
            TransferException: 복사 도중 실패 시 (부분 전송 바이트 수 포함)
        """
        self._require_connected("download")
        result = TransferResult(
            direction=TransferDirection.DOWNLOAD,
            source=remote_path,
            destination=str(local_path)
        )
        sftp = self._ensure_sftp()

        try:
            local_file = open(local_path, "wb")
        except OSError as e:
            logger.error(f"[SFTP] Cannot create local file {local_path}: {e}")
            raise LocalFileException(result=result, path=str(local_path), detail=str(e), original_exception=e)

        with local_file:
            try:
                remote_file = sftp.open(remote_path, "rb")
            except (OSError, paramiko.SSHException) as e:
                logger.error(f"[SFTP] Cannot open remote file {remote_path}: {e}")
                raise RemoteFileException(result=result, path=remote_path, detail=str(e), original_exception=e)

            self._copy(remote_file, local_file, result, remote_file)

        logger.info(f"[SFTP] File downloaded: {remote_path} -> {local_path} ({result.bytes_transferred} bytes)")
        return result

    def close(self) -> None:
        """SFTP, SSH 순서로 연결 해제 및 리소스 정리

        여러 번 호출해도 안전함
        """
        if self._sftp is not None:
            try:
                self._sftp.close()
                logger.debug("[SFTP] SFTP client closed")
            except Exception as e:
                logger.warning(f"[SFTP] Error while closing SFTP client: {e}")
            finally:
                self._sftp = None

        if self._client is not None:
            try:
                self._client.close()
                logger.info(f"[SSH] Disconnected from {self._host.address}")
            except Exception as e:
                logger.warning(f"[SSH] Error while closing SSH client: {e}")
            finally:
                self._client = None

        self._state = SessionState.CLOSED

    def is_connected(self) -> bool:
        """연결이 활성되어 있는지 확인"""
        return self._client is not None and self._state in (SessionState.CONNECTED, SessionState.TRANSFER_READY)

    def connection_info(self) -> Dict[str, Any]:
        """
        현재 연결 정보 조회

        Returns:
            연결 정보가 담긴 딕셔너리
        """
        transport = self._client.get_transport() if self._client is not None else None
        return {
            "host": self._host.address,
            "port": self._port,
            "username": self._username,
            "state": self._state.value,
            "transport_active": bool(transport and transport.is_active()),
            "sftp_open": self._sftp is not None,
        }

    def _require_connected(self, operation: str) -> None:
        if not self.is_connected():
            logger.error(f"[SSH] {operation} requires a connected session (state={self._state.value})")
            raise SSHNotConnectedException(operation=operation, detail=f"session is {self._state.value}")

    def _ensure_sftp(self) -> paramiko.SFTPClient:
        """SFTP 클라이언트를 처음 필요할 때 한 번만 연다"""
        if self._sftp is None:
            try:
                logger.debug(f"[SFTP] Opening SFTP sub-channel to {self._host.address}")
                self._sftp = self._client.open_sftp()
            except (paramiko.SSHException, OSError) as e:
                logger.error(f"[SFTP] Failed to open SFTP sub-channel: {e}")
                raise SSHChannelException(
                    error_code=ErrorCode.SSH_SFTP_CHANNEL_FAILED,
                    detail=str(e),
                    original_exception=e
                )
            self._state = SessionState.TRANSFER_READY
            logger.info(f"[SFTP] SFTP connection established to {self._host.address}")
        return self._sftp

    def _copy(self, reader: BinaryIO, writer: BinaryIO, result: TransferResult, remote_file: BinaryIO) -> None:
        # 원격 파일 close 에러도 TransferException으로 보고
        try:
            with remote_file:
                for written in iter_copy(reader, writer, self._chunk_size):
                    result.bytes_transferred += written
        except (OSError, paramiko.SSHException) as e:
            logger.error(
                f"[SFTP] {result.direction.value} failed after {result.bytes_transferred} bytes: "
                f"{result.source} -> {result.destination}: {e}"
            )
            raise TransferException(result=result, detail=str(e), original_exception=e)

    @staticmethod
    def _discard_client(client: paramiko.SSHClient) -> None:
        try:
            client.close()
        except Exception as e:
            logger.debug(f"[SSH] Error while discarding client: {e}")
