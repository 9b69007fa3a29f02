from enum import Enum
from typing import Any, Dict, Optional, Union
from pathlib import Path

import paramiko
from pydantic import BaseModel, ConfigDict, field_validator

from opsdial.core.exceptions import InvalidHostNameException, InvalidPortException

MAX_PORT = 65535


class HostRecord(BaseModel):
    """호스트 목록 한 줄에 해당하는 접속 대상 모델

    생성 시점에 주소와 포트를 검증하므로 잘못된 레코드로는 네트워크 접속을 시도하지 않는다.
    """
    model_config = ConfigDict(frozen=True)

    address: str
    port: int = 0
    username: str = ""
    credential: str = ""

    @field_validator("address", mode="before")
    @classmethod
    def validate_address(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise InvalidHostNameException()
        return value.strip()

    @field_validator("port", mode="before")
    @classmethod
    def validate_port(cls, value: Any) -> int:
        if isinstance(value, bool):
            raise InvalidPortException(port=value)
        if isinstance(value, float) and not value.is_integer():
            raise InvalidPortException(port=value)
        try:
            port = int(str(value).strip()) if isinstance(value, str) else int(value)
        except (TypeError, ValueError):
            raise InvalidPortException(port=value)
        if port < 0 or port > MAX_PORT:
            raise InvalidPortException(port=port)
        return port

    def __str__(self) -> str:
        return f"{self.username}@{self.address}:{self.port}"


class AuthConfig(BaseModel):
    """부분적으로 채워진 인증 설정

    비어 있는 값은 AuthResolver가 인증 방식을 만들 때 기본값으로 채운다.
    """
    model_config = ConfigDict(frozen=True)

    user: Optional[str] = None
    password: Optional[str] = None
    key_file: Optional[Union[str, Path]] = None
    timeout: Optional[float] = None


class AuthMethod(BaseModel):
    """Resolved credentials handed to paramiko"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    username: str
    timeout: float
    password: Optional[str] = None
    pkey: Optional[paramiko.PKey] = None
    key_file: Optional[str] = None

    @property
    def kind(self) -> str:
        return "password" if self.password else "publickey"

    def connect_kwargs(self) -> Dict[str, Any]:
        """paramiko.SSHClient.connect 인자로 변환"""
        kwargs: Dict[str, Any] = {
            "username": self.username,
            "timeout": self.timeout,
            "banner_timeout": self.timeout,
            "auth_timeout": self.timeout,
            "allow_agent": False,
            "look_for_keys": False,
        }
        if self.password:
            kwargs["password"] = self.password
        else:
            kwargs["pkey"] = self.pkey
        return kwargs


class SessionState(str, Enum):
    """RemoteSession lifecycle"""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    TRANSFER_READY = "transfer_ready"
    CLOSED = "closed"
