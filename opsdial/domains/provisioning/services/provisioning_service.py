from typing import Callable, Iterable, Optional

from opsdial.core.exceptions import (
    BaseAppException,
    ErrorCode,
    ProvisioningException,
    SSHChannelException,
    TransferException,
)
from opsdial.core.logger import logger
from opsdial.domains.provisioning.schemas.provision_schema import (
    BatchReport,
    HostLine,
    HostOutcome,
    ProvisionConfig,
    ProvisionStage,
)
from opsdial.domains.provisioning.services.host_list_service import HostListService
from opsdial.infrastructures.ssh import AuthConfig, AuthResolver, HostRecord, RemoteSession
from opsdial.infrastructures.ssh.interfaces.remote_session import RemoteSessionInterface

SessionFactory = Callable[[HostRecord, AuthConfig], RemoteSessionInterface]


class ProvisioningService:
    """호스트 목록을 순서대로 돌며 패키지 업로드 / 압축 해제 / 설치를 수행

    호스트 간에 공유되는 상태는 없으며 한 호스트의 실패는 해당 호스트의 결과로만 기록된다.
    """

    def __init__(
        self,
        config: ProvisionConfig,
        session_factory: Optional[SessionFactory] = None,
        host_list_service: Optional[HostListService] = None,
    ):
        self.config = config
        self._session_factory = session_factory or self._default_session_factory
        self._host_list_service = host_list_service or HostListService()
        self._resolver = AuthResolver(default_timeout=config.connect_timeout)

    def _default_session_factory(self, record: HostRecord, auth_config: AuthConfig) -> RemoteSessionInterface:
        return RemoteSession(
            host=record,
            auth_config=auth_config,
            resolver=self._resolver,
            exec_timeout=self.config.exec_timeout,
        )

    def build_auth_config(self, record: HostRecord) -> AuthConfig:
        """호스트 레코드의 사용자/비밀번호로 인증 설정 생성 (비밀번호가 없으면 키 파일 사용)"""
        return AuthConfig(
            user=record.username or None,
            password=record.credential or None,
            key_file=self.config.key_file,
            timeout=self.config.connect_timeout,
        )

    def run(self, lines: Iterable[HostLine]) -> BatchReport:
        """
        호스트 목록 전체 처리

        Args:
            lines: HostListService.load()가 반환한 줄 목록

        Returns:
            BatchReport: 줄 순서대로 정렬된 호스트별 결과
        """
        report = BatchReport()

        for line in lines:
            try:
                record = self._host_list_service.parse(line)
            except BaseAppException as e:
                logger.error(f"[PROVISION] line {line.line_number}: skipped, {e}")
                report.outcomes.append(HostOutcome(
                    line_number=line.line_number,
                    stage=ProvisionStage.PARSE,
                    error_code=e.code,
                    error=str(e),
                ))
                continue

            report.outcomes.append(self.provision_host(record, line_number=line.line_number))

        logger.info(
            f"[PROVISION] Finished: {len(report.succeeded)} succeeded, "
            f"{len(report.failed)} failed, {len(report.outcomes)} total"
        )
        return report

    def provision_host(self, record: HostRecord, line_number: Optional[int] = None) -> HostOutcome:
        """호스트 한 대에 대해 전체 설치 단계를 수행하고 결과를 반환 (예외를 올리지 않음)"""
        outcome = HostOutcome(line_number=line_number, address=record.address)
        session = self._session_factory(record, self.build_auth_config(record))

        try:
            self._provision(session, record, outcome)
            outcome.stage = ProvisionStage.COMPLETED
            outcome.success = True
            logger.info(f"[PROVISION] {record.address}: completed")

        except BaseAppException as e:
            outcome.error_code = e.code
            outcome.error = str(e)
            if isinstance(e, TransferException):
                outcome.bytes_uploaded = e.bytes_transferred
            if isinstance(e, SSHChannelException) and e.output:
                outcome.output = e.output.decode("utf-8", errors="replace")
            logger.error(f"[PROVISION] {record.address}: failed at {outcome.stage.value}, {e}")
            logger.debug(f"[PROVISION] {record.address}: {e.to_log_dict()}")

        except Exception as e:
            outcome.error_code = ErrorCode.UNKNOWN_ERROR.code
            outcome.error = f"{type(e).__name__}: {e}"
            logger.exception(f"[PROVISION] {record.address}: unexpected error at {outcome.stage.value}")

        finally:
            session.close()

        return outcome

    def _provision(self, session: RemoteSessionInterface, record: HostRecord, outcome: HostOutcome) -> None:
        """
        1. 연결
        2. 패키지 업로드
        3. 압축 해제 (실패 시 중단)
        4. 실행 권한 부여 (실패해도 계속)
        5. 설치 스크립트 실행 (실패 시 중단)
        """
        address = record.address

        outcome.stage = ProvisionStage.CONNECT
        logger.info(f"[PROVISION] {address}: connecting")
        session.connect()

        outcome.stage = ProvisionStage.UPLOAD
        logger.info(f"[PROVISION] {address}: uploading {self.config.package_path} to {self.config.remote_archive}")
        transfer = session.upload(self.config.package_path, self.config.remote_archive)
        outcome.bytes_uploaded = transfer.bytes_transferred

        outcome.stage = ProvisionStage.UNPACK
        logger.info(f"[PROVISION] {address}: unpacking {self.config.remote_archive}")
        self._run_checked(session, address, outcome, self.config.build_unpack_command())

        outcome.stage = ProvisionStage.PERMISSIONS
        logger.info(f"[PROVISION] {address}: granting execute permission on {self.config.package_dir}")
        try:
            result = session.exec(self.config.build_chmod_command())
            if not result.successful:
                logger.warning(
                    f"[PROVISION] {address}: chmod exited with {result.exit_code}, continuing: "
                    f"{result.output_text.strip()}"
                )
        except SSHChannelException as e:
            logger.warning(f"[PROVISION] {address}: chmod failed, continuing: {e}")

        outcome.stage = ProvisionStage.INSTALL
        logger.info(f"[PROVISION] {address}: running {self.config.entry_point_path}")
        self._run_checked(session, address, outcome, self.config.build_install_command())

    @staticmethod
    def _run_checked(session: RemoteSessionInterface, address: str, outcome: HostOutcome, command: str) -> None:
        result = session.exec(command)
        outcome.output = result.output_text
        if not result.successful:
            raise ProvisioningException(
                step=outcome.stage.value,
                host=address,
                exit_code=result.exit_code,
                detail=f"'{command}' exited with {result.exit_code}"
            )
