import getpass
import io
from pathlib import Path
from typing import Optional

import paramiko

from opsdial.core.config import settings
from opsdial.core.exceptions import CredentialReadException, CredentialParseException
from opsdial.core.logger import logger
from opsdial.infrastructures.ssh.models.connection import AuthConfig, AuthMethod

# 키 파일 형식 판별 순서
KEY_CLASSES = (paramiko.RSAKey, paramiko.ECDSAKey, paramiko.Ed25519Key)


def get_current_user() -> str:
    """현재 OS 사용자명"""
    return getpass.getuser()


def default_key_file() -> Path:
    return Path.home() / ".ssh" / "id_rsa"


class AuthResolver:
    """AuthConfig를 paramiko에서 사용할 수 있는 AuthMethod로 변환

    네트워크 I/O는 없으며 비밀번호가 비어 있을 때 키 파일을 한 번 읽는 것이 유일한 부수효과다.
    """

    def __init__(self, default_timeout: Optional[float] = None):
        self._default_timeout = default_timeout if default_timeout is not None else settings.SSH_TIMEOUT

    def apply_defaults(self, config: AuthConfig) -> AuthConfig:
        """비어 있는 user, key_file, timeout 값을 기본값으로 채운 사본을 반환"""
        updates = {}
        if not config.user:
            updates["user"] = get_current_user()
        if not config.key_file:
            updates["key_file"] = settings.SSH_KEY_FILE or default_key_file()
        if not config.timeout:
            updates["timeout"] = self._default_timeout
        return config.model_copy(update=updates) if updates else config

    def resolve(self, config: AuthConfig) -> AuthMethod:
        """인증 방식 결정

        Args:
            config: 부분적으로 채워진 인증 설정

        Returns:
            AuthMethod: 비밀번호 또는 개인키 기반 인증 방식

        Raises:
            CredentialReadException: 키 파일을 읽을 수 없을 때
            CredentialParseException: 키 파일이 올바른 개인키가 아닐 때
        """
        config = self.apply_defaults(config)

        if config.password:
            logger.debug(f"[AUTH] {config.user}: password authentication")
            return AuthMethod(username=config.user, timeout=config.timeout, password=config.password)

        key_path = Path(config.key_file).expanduser()
        pkey = self.load_private_key(key_path)
        logger.debug(f"[AUTH] {config.user}: public key authentication ({key_path})")
        return AuthMethod(
            username=config.user,
            timeout=config.timeout,
            pkey=pkey,
            key_file=str(key_path),
        )

    @staticmethod
    def load_private_key(key_path: Path) -> paramiko.PKey:
        try:
            data = key_path.read_bytes()
        except OSError as e:
            logger.error(f"[AUTH] Cannot read private key {key_path}: {e}")
            raise CredentialReadException(
                key_file=str(key_path),
                detail=str(e),
                original_exception=e
            )

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CredentialParseException(
                key_file=str(key_path),
                detail="key file is not text",
                original_exception=e
            )

        last_error: Optional[Exception] = None
        for key_class in KEY_CLASSES:
            try:
                return key_class.from_private_key(io.StringIO(text))
            except (paramiko.SSHException, ValueError) as e:
                last_error = e

        logger.error(f"[AUTH] {key_path} is not a valid private key")
        raise CredentialParseException(
            key_file=str(key_path),
            detail=str(last_error) if last_error else None,
            original_exception=last_error
        )
