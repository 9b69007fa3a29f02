import errno
import functools
import io
import os
import socket

os.environ.setdefault("LOG_TO_FILE", "false")

import paramiko
import pytest

from opsdial.domains.provisioning.schemas.provision_schema import ProvisionConfig
from opsdial.infrastructures.ssh import AuthConfig, HostRecord, RemoteSession


class FakeSSHServer:
    """메모리 상의 SSH 서버 (커맨드 응답 / SFTP 파일 저장소)"""

    def __init__(self, address: str, password: str = "secret"):
        self.address = address
        self.password = password
        self.accept_pkey = True
        # command -> (output, exit_code)
        self.commands = {}
        # command -> 타임아웃 전까지 보낼 출력
        self.hanging_commands = {}
        self.files = {}
        self.denied_paths = set()
        # path -> 쓰기 가능한 최대 바이트 수
        self.write_limits = {}
        # path -> 읽기 가능한 최대 바이트 수
        self.read_limits = {}
        # "sftp" | "ssh" -> close 시 발생시킬 예외
        self.close_errors = {}
        self.connect_error = None
        self.sftp_error = None

        self.connect_count = 0
        self.sftp_open_count = 0
        self.executed = []
        self.connect_kwargs = []
        self.clients = []
        self.close_log = []


class FakeNetwork:
    def __init__(self):
        self.servers = {}

    def add(self, address: str, **kwargs) -> FakeSSHServer:
        server = FakeSSHServer(address, **kwargs)
        self.servers[address] = server
        return server

    def client(self) -> "FakeSSHClient":
        return FakeSSHClient(self)


class FakeChannel:
    def __init__(self, server: FakeSSHServer):
        self._server = server
        self._buffer = b""
        self._exit_code = -1
        self._hang = False
        self.combine_stderr = False
        self.timeout = None
        self.closed = False

    def set_combine_stderr(self, combine: bool) -> None:
        self.combine_stderr = combine

    def settimeout(self, timeout) -> None:
        self.timeout = timeout

    def exec_command(self, command: str) -> None:
        self._server.executed.append(command)
        if command in self._server.hanging_commands:
            self._buffer = self._server.hanging_commands[command]
            self._hang = True
            return
        self._buffer, self._exit_code = self._server.commands.get(command, (b"", 0))

    def recv(self, size: int) -> bytes:
        if self._buffer:
            data, self._buffer = self._buffer[:size], self._buffer[size:]
            return data
        if self._hang:
            raise socket.timeout("timed out")
        return b""

    def recv_exit_status(self) -> int:
        return self._exit_code

    def close(self) -> None:
        self.closed = True


class FakeTransport:
    def __init__(self, client: "FakeSSHClient"):
        self._client = client

    def is_active(self) -> bool:
        return not self._client.closed

    def open_session(self) -> FakeChannel:
        return FakeChannel(self._client.server)


class FakeSFTPFile(io.BytesIO):
    def __init__(self, server: FakeSSHServer, path: str, mode: str):
        super().__init__(server.files.get(path, b"") if "r" in mode else b"")
        self._server = server
        self._path = path
        self._writable = "w" in mode
        self._limit = server.write_limits.get(path)
        self._read_limit = server.read_limits.get(path)

    def read(self, size=-1) -> bytes:
        if self._read_limit is not None and self.tell() >= self._read_limit:
            raise OSError(errno.EPIPE, "connection lost")
        return super().read(size)

    def write(self, data) -> int:
        if self._limit is not None and self.tell() + len(data) > self._limit:
            raise OSError(errno.EPIPE, "connection lost")
        return super().write(data)

    def close(self) -> None:
        if self._writable and not self.closed:
            self._server.files[self._path] = self.getvalue()
        super().close()


class FakeSFTPClient:
    def __init__(self, server: FakeSSHServer):
        self._server = server
        self.closed = False

    def open(self, path: str, mode: str = "r") -> FakeSFTPFile:
        if path in self._server.denied_paths:
            raise PermissionError(errno.EACCES, "Permission denied", path)
        if "r" in mode and path not in self._server.files:
            raise FileNotFoundError(errno.ENOENT, "No such file", path)
        return FakeSFTPFile(self._server, path, mode)

    def close(self) -> None:
        self.closed = True
        self._server.close_log.append("sftp")
        if "sftp" in self._server.close_errors:
            raise self._server.close_errors["sftp"]


class FakeSSHClient:
    """paramiko.SSHClient 대체 (RemoteSession의 client_factory로 주입)"""

    def __init__(self, network: FakeNetwork):
        self._network = network
        self.server = None
        self.policy = None
        self.closed = False

    def set_missing_host_key_policy(self, policy) -> None:
        self.policy = policy

    def connect(self, hostname: str, port: int = 22, **kwargs) -> None:
        server = self._network.servers.get(hostname)
        if server is None:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

        server.clients.append(self)
        server.connect_kwargs.append(dict(kwargs, port=port))
        if server.connect_error is not None:
            raise server.connect_error
        if kwargs.get("password") is not None:
            if kwargs["password"] != server.password:
                raise paramiko.AuthenticationException("Authentication failed.")
        elif not (server.accept_pkey and isinstance(kwargs.get("pkey"), paramiko.PKey)):
            raise paramiko.AuthenticationException("Authentication failed.")

        server.connect_count += 1
        self.server = server

    def get_transport(self):
        return FakeTransport(self) if self.server is not None else None

    def open_sftp(self) -> FakeSFTPClient:
        if self.server.sftp_error is not None:
            raise self.server.sftp_error
        self.server.sftp_open_count += 1
        return FakeSFTPClient(self.server)

    def close(self) -> None:
        self.closed = True
        if self.server is not None:
            self.server.close_log.append("ssh")
            if "ssh" in self.server.close_errors:
                raise self.server.close_errors["ssh"]


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
def server(network):
    return network.add("10.0.0.1")


@pytest.fixture
def make_session(network):
    def _make(address: str = "10.0.0.1", port: int = 22, password: str = "secret", **kwargs) -> RemoteSession:
        host = HostRecord(address=address, port=port, username="root", credential=password)
        return RemoteSession(
            host,
            AuthConfig(user="root", password=password),
            client_factory=network.client,
            **kwargs
        )
    return _make


@pytest.fixture(scope="session")
def rsa_key_file(tmp_path_factory):
    path = tmp_path_factory.mktemp("keys") / "id_rsa"
    paramiko.RSAKey.generate(2048).write_private_key_file(str(path))
    return path


@pytest.fixture
def package_file(tmp_path):
    path = tmp_path / "telegraf.zip"
    path.write_bytes(b"PK\x03\x04" + b"telegraf" * 64)
    return path


@pytest.fixture
def provision_config(package_file):
    return ProvisionConfig.from_settings(package_path=package_file, remote_dir="/opt", exec_timeout=5.0)


@pytest.fixture
def fake_remote_session(network):
    """RemoteSession with the fake network as its client factory"""
    return functools.partial(RemoteSession, client_factory=network.client)
