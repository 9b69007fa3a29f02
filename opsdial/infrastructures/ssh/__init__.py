"""SSH Infrastructure Module

Provides the remote session used for provisioning: SSH command execution and
SFTP file transfer over a single lazily-opened connection.

Usage:
    from opsdial.infrastructures.ssh import RemoteSession, HostRecord, AuthConfig

    host = HostRecord(address="10.0.0.5", port=22, username="root", credential="secret")
    with RemoteSession(host, AuthConfig(user=host.username, password=host.credential)) as session:
        session.connect()
        session.upload("telegraf.zip", "/opt/telegraf.zip")
        result = session.exec("unzip -o /opt/telegraf.zip -d /opt")
"""

from opsdial.infrastructures.ssh.implements.auth_resolver import AuthResolver
from opsdial.infrastructures.ssh.implements.remote_session import RemoteSession
from opsdial.infrastructures.ssh.interfaces.remote_session import RemoteSessionInterface
from opsdial.infrastructures.ssh.models.connection import (
    AuthConfig,
    AuthMethod,
    HostRecord,
    SessionState,
)
from opsdial.infrastructures.ssh.models.ssh_result import (
    ExecResult,
    TransferDirection,
    TransferResult,
)

__all__ = [
    "AuthResolver",
    "RemoteSession",
    "RemoteSessionInterface",
    "AuthConfig",
    "AuthMethod",
    "HostRecord",
    "SessionState",
    "ExecResult",
    "TransferDirection",
    "TransferResult",
]
