"""
Provisioning Schemas
설치 작업 설정 / 호스트별 결과 스키마
"""

import posixpath
import shlex
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from opsdial.core.config import settings


class HostLine(BaseModel):
    """호스트 목록 파일의 한 줄"""
    line_number: int = Field(..., ge=1, description="1부터 시작하는 줄 번호")
    text: str = Field(..., description="줄바꿈을 제거한 원문")


class ProvisionConfig(BaseModel):
    """설치 패키지 및 원격 경로 설정"""

    package_path: Path = Field(..., description="로컬 설치 패키지 경로")
    remote_dir: str = Field(..., description="패키지를 업로드하고 압축을 풀 원격 디렉토리")
    package_dir_name: str = Field(..., description="압축 해제 후 생성되는 디렉토리 이름")
    entry_point: str = Field(..., description="패키지 디렉토리 아래의 설치 스크립트")
    unpack_command: str = Field(..., description="압축 해제 커맨드 템플릿")
    chmod_command: str = Field(..., description="실행 권한 부여 커맨드 템플릿")
    connect_timeout: float = Field(..., gt=0, description="SSH 연결 타임아웃 (초)")
    exec_timeout: Optional[float] = Field(None, gt=0, description="커맨드 실행 타임아웃 (초)")
    key_file: Optional[str] = Field(None, description="비밀번호가 없을 때 사용할 개인키")

    @classmethod
    def from_settings(cls, **overrides) -> "ProvisionConfig":
        """settings 값에 None이 아닌 overrides를 덮어써서 생성"""
        values = {
            "package_path": settings.PACKAGE_PATH,
            "remote_dir": settings.PACKAGE_REMOTE_DIR,
            "package_dir_name": settings.PACKAGE_DIR_NAME,
            "entry_point": settings.PACKAGE_ENTRY_POINT,
            "unpack_command": settings.PACKAGE_UNPACK_COMMAND,
            "chmod_command": settings.PACKAGE_CHMOD_COMMAND,
            "connect_timeout": settings.SSH_TIMEOUT,
            "exec_timeout": settings.SSH_EXEC_TIMEOUT,
            "key_file": settings.SSH_KEY_FILE,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    @property
    def remote_archive(self) -> str:
        return posixpath.join(self.remote_dir, self.package_path.name)

    @property
    def package_dir(self) -> str:
        return posixpath.join(self.remote_dir, self.package_dir_name)

    @property
    def entry_point_path(self) -> str:
        return posixpath.join(self.package_dir, self.entry_point)

    def _format(self, template: str) -> str:
        return template.format(
            archive=shlex.quote(self.remote_archive),
            remote_dir=shlex.quote(self.remote_dir),
            package_dir=shlex.quote(self.package_dir),
        )

    def build_unpack_command(self) -> str:
        return self._format(self.unpack_command)

    def build_chmod_command(self) -> str:
        return self._format(self.chmod_command)

    def build_install_command(self) -> str:
        return shlex.quote(self.entry_point_path)


class ProvisionStage(str, Enum):
    """호스트별 진행 단계"""
    PARSE = "parse"
    CONNECT = "connect"
    UPLOAD = "upload"
    UNPACK = "unpack"
    PERMISSIONS = "permissions"
    INSTALL = "install"
    COMPLETED = "completed"


class HostOutcome(BaseModel):
    """호스트 한 대의 설치 결과

    stage는 성공 시 COMPLETED, 실패 시 실패한 단계를 가리킨다.
    """
    line_number: Optional[int] = None
    address: Optional[str] = None
    stage: ProvisionStage = ProvisionStage.CONNECT
    success: bool = False
    error_code: Optional[int] = None
    error: Optional[str] = None
    bytes_uploaded: int = 0
    output: str = ""


class BatchReport(BaseModel):
    """배치 전체 결과"""
    outcomes: List[HostOutcome] = Field(default_factory=list)

    @property
    def succeeded(self) -> List[HostOutcome]:
        return [outcome for outcome in self.outcomes if outcome.success]

    @property
    def failed(self) -> List[HostOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]

    @property
    def all_succeeded(self) -> bool:
        return not self.failed
