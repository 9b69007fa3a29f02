import pytest
from pydantic import ValidationError

from opsdial.core.exceptions import ErrorCode, InvalidHostNameException, InvalidPortException
from opsdial.infrastructures.ssh import HostRecord


def test_valid_record():
    record = HostRecord(address=" 10.0.0.1 ", port="2222", username="root", credential="pw")

    assert record.address == "10.0.0.1"
    assert record.port == 2222
    assert str(record) == "root@10.0.0.1:2222"


@pytest.mark.parametrize("port", [0, 22, 65535, " 22 ", 22.0])
def test_port_range_accepted(port):
    assert 0 <= HostRecord(address="h", port=port).port <= 65535


@pytest.mark.parametrize("port", [-1, 65536, "abc", "", "22.5", True, 22.7, float("nan")])
def test_invalid_port(port):
    with pytest.raises(InvalidPortException) as exc_info:
        HostRecord(address="h", port=port)

    assert exc_info.value.error_code == ErrorCode.INVALID_PORT


@pytest.mark.parametrize("address", ["", "   "])
def test_empty_address(address):
    with pytest.raises(InvalidHostNameException) as exc_info:
        HostRecord(address=address, port=22)

    assert exc_info.value.error_code == ErrorCode.INVALID_HOST_NAME


def test_record_is_immutable():
    record = HostRecord(address="h", port=22)

    with pytest.raises(ValidationError):
        record.port = 23
