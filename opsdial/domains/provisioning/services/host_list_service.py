"""Host list reading

한 줄에 한 호스트씩 `username|credential|address|port` 형식으로 기록된 파일을 읽는다.
구분자는 escape를 지원하지 않는다.
"""

from pathlib import Path
from typing import List, Union

from opsdial.core.config import settings
from opsdial.core.exceptions import HostFileException, HostLineFormatException
from opsdial.core.logger import logger
from opsdial.domains.provisioning.schemas.provision_schema import HostLine
from opsdial.infrastructures.ssh.models.connection import HostRecord

HOST_FIELD_COUNT = 4
COMMENT_PREFIX = "#"


class HostListService:
    """호스트 목록 파일 로딩 및 줄 단위 파싱"""

    def __init__(self, delimiter: str = settings.HOST_FILE_DELIMITER):
        self.delimiter = delimiter

    def load(self, path: Union[str, Path]) -> List[HostLine]:
        """
        호스트 목록 파일을 읽어 처리 대상 줄 목록을 반환

        빈 줄과 '#'으로 시작하는 줄은 건너뛴다. 파싱은 parse()에서 줄마다 따로 수행하므로
        잘못된 줄이 있어도 나머지 줄 처리에 영향을 주지 않는다.

        Args:
            path: 호스트 목록 파일 경로

        Returns:
            HostLine 목록

        Raises:
            HostFileException: 파일을 열 수 없을 때
        """
        try:
            with open(path, "r", encoding="utf-8") as host_file:
                raw_lines = host_file.read().splitlines()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"[HOSTS] Open {path} failed: {e}")
            raise HostFileException(path=str(path), detail=str(e), original_exception=e)

        lines = []
        for line_number, text in enumerate(raw_lines, start=1):
            stripped = text.strip()
            if not stripped or stripped.startswith(COMMENT_PREFIX):
                continue
            lines.append(HostLine(line_number=line_number, text=text))

        logger.info(f"[HOSTS] Loaded {len(lines)} host line(s) from {path}")
        return lines

    def parse(self, line: HostLine) -> HostRecord:
        """
        한 줄을 HostRecord로 변환

        Raises:
            HostLineFormatException: 필드 개수가 맞지 않을 때
            InvalidHostNameException: 주소가 비어 있을 때
            InvalidPortException: 포트가 숫자가 아니거나 범위를 벗어날 때
        """
        fields = line.text.split(self.delimiter)
        if len(fields) != HOST_FIELD_COUNT:
            raise HostLineFormatException(
                line_number=line.line_number,
                expected_fields=HOST_FIELD_COUNT,
                actual_fields=len(fields)
            )

        username, credential, address, port = fields
        return HostRecord(
            address=address,
            port=port,
            username=username,
            credential=credential
        )
