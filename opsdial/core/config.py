from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import Optional
from pydantic import Field


class Settings(BaseSettings):
    # 환경 설정
    ENV: str = Field("production", pattern="^(development|staging|production)$")

    # 기본 애플리케이션 설정
    APP_NAME: str = "opsdial"
    APP_DESC: str = "Batch remote provisioning over SSH/SFTP"
    APP_VERSION: str = "0.1.0"

    # 로깅 설정
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_TO_FILE: bool = True
    LOG_DIR: Path = Path("logs")
    LOG_FILE: str = "opsdial.log"
    LOG_MAX_BYTES: int = 1024 * 1024
    LOG_BACKUP_COUNT: int = 5

    # SSH 설정
    SSH_TIMEOUT: float = 15.0
    SSH_DEFAULT_PORT: int = 22
    SSH_EXEC_TIMEOUT: Optional[float] = 600.0
    SSH_KEY_FILE: Optional[str] = None
    SSH_TRANSFER_CHUNK_SIZE: int = 32768

    # 호스트 목록 설정
    HOST_FILE_DELIMITER: str = "|"

    # 설치 패키지 설정
    PACKAGE_PATH: Path = Path("telegraf.zip")
    PACKAGE_REMOTE_DIR: str = "/opt"
    PACKAGE_DIR_NAME: str = "telegraf"
    PACKAGE_ENTRY_POINT: str = "entry.sh"
    PACKAGE_UNPACK_COMMAND: str = "unzip -o {archive} -d {remote_dir}"
    PACKAGE_CHMOD_COMMAND: str = "chmod -R +x {package_dir}"

    # 한 호스트라도 실패하면 non-zero 종료
    FAIL_ON_HOST_ERROR: bool = True

    @property
    def LOG_PATH(self) -> Path:
        """로그 파일 전체 경로"""
        return self.LOG_DIR / self.LOG_FILE

    # 환경별 설정값 조정
    def configure_for_environment(self):
        if self.ENV == "development":
            self.LOG_LEVEL = "DEBUG"

    # 환경변수 파일 설정
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        env_nested_delimiter='__',
        extra='ignore'
    )


settings = Settings()
settings.configure_for_environment()
