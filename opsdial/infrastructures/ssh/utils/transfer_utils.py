from typing import BinaryIO, Iterator

DEFAULT_CHUNK_SIZE = 32768


def iter_copy(reader: BinaryIO, writer: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[int]:
    """reader의 내용을 writer로 청크 단위 복사하며 청크마다 기록한 바이트 수를 yield

    호출자가 yield된 값을 누적하면 복사가 중간에 실패해도 그때까지 쓴 바이트 수를 알 수 있다.
    """
    while True:
        chunk = reader.read(chunk_size)
        if not chunk:
            return
        writer.write(chunk)
        yield len(chunk)
