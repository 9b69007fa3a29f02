import argparse
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from opsdial.core.config import settings
from opsdial.core.exceptions import ErrorCode, GeneralException, HostFileException
from opsdial.core.logger import logger
from opsdial.domains.provisioning.schemas.provision_schema import BatchReport, ProvisionConfig
from opsdial.domains.provisioning.services.host_list_service import HostListService
from opsdial.domains.provisioning.services.provisioning_service import ProvisioningService

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_HOST_FAILURES = 3


def positive_float(value: str) -> float:
    """argparse type: 0보다 큰 초 단위 값"""
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if not seconds > 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {value!r}")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=settings.APP_NAME,
        description=settings.APP_DESC,
    )
    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"{settings.APP_NAME} {settings.APP_VERSION}"
    )
    parser.add_argument(
        "host_file",
        type=Path,
        metavar="HOST_FILE",
        help=f"Host list, one 'username{settings.HOST_FILE_DELIMITER}password"
             f"{settings.HOST_FILE_DELIMITER}address{settings.HOST_FILE_DELIMITER}port' per line"
    )
    parser.add_argument(
        "--package",
        dest="package_path",
        type=Path,
        metavar="PATH",
        help=f"Local package to install (default: {settings.PACKAGE_PATH})"
    )
    parser.add_argument(
        "--remote-dir",
        metavar="DIR",
        help=f"Remote directory the package is uploaded to and unpacked in (default: {settings.PACKAGE_REMOTE_DIR})"
    )
    parser.add_argument(
        "--entry-point",
        metavar="NAME",
        help=f"Install script inside the unpacked directory (default: {settings.PACKAGE_ENTRY_POINT})"
    )
    parser.add_argument(
        "--timeout",
        dest="connect_timeout",
        type=positive_float,
        metavar="SECONDS",
        help=f"SSH connect timeout (default: {settings.SSH_TIMEOUT})"
    )
    parser.add_argument(
        "--exec-timeout",
        type=positive_float,
        metavar="SECONDS",
        help=f"Remote command timeout (default: {settings.SSH_EXEC_TIMEOUT})"
    )
    parser.add_argument(
        "--key-file",
        metavar="PATH",
        help="Private key used for hosts without a password (default: ~/.ssh/id_rsa)"
    )
    return parser


def print_report(report: BatchReport, stream: TextIO = sys.stdout) -> None:
    """호스트별 결과 요약 출력"""
    stream.write(f"{'LINE':>5}  {'HOST':<32} {'STAGE':<12} {'RESULT':<7} DETAIL\n")
    for outcome in report.outcomes:
        line = outcome.line_number if outcome.line_number is not None else "-"
        result = "OK" if outcome.success else "FAILED"
        detail = f"{outcome.bytes_uploaded} bytes uploaded" if outcome.success else (outcome.error or "")
        stream.write(
            f"{line:>5}  {outcome.address or '-':<32} {outcome.stage.value:<12} {result:<7} {detail}\n"
        )
    stream.write(f"{len(report.succeeded)} succeeded, {len(report.failed)} failed\n")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = ProvisionConfig.from_settings(
        package_path=args.package_path,
        remote_dir=args.remote_dir,
        entry_point=args.entry_point,
        connect_timeout=args.connect_timeout,
        exec_timeout=args.exec_timeout,
        key_file=args.key_file,
    )

    if not config.package_path.is_file():
        error = GeneralException(ErrorCode.PACKAGE_NOT_FOUND, detail=str(config.package_path))
        logger.error(f"[PROVISION] {error}")
        return EXIT_FATAL

    host_list_service = HostListService()
    try:
        lines = host_list_service.load(args.host_file)
    except HostFileException as e:
        logger.error(f"[PROVISION] {e}")
        return EXIT_FATAL

    service = ProvisioningService(config, host_list_service=host_list_service)
    report = service.run(lines)
    print_report(report)

    if not report.all_succeeded and settings.FAIL_ON_HOST_ERROR:
        return EXIT_HOST_FAILURES
    return EXIT_OK
