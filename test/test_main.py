import pytest

from opsdial import main as cli
from opsdial.core.config import settings
from opsdial.domains.provisioning.services import provisioning_service


@pytest.fixture(autouse=True)
def fake_ssh(monkeypatch, fake_remote_session):
    # 기본 세션 팩토리가 가짜 네트워크를 사용하도록 교체
    monkeypatch.setattr(provisioning_service, "RemoteSession", fake_remote_session)


@pytest.fixture
def host_file(tmp_path):
    path = tmp_path / "hosts.txt"
    path.write_text("root|secret|10.0.0.1|22\nroot|secret|10.0.0.2|22\n", encoding="utf-8")
    return path


def test_all_hosts_succeed(network, host_file, package_file, capsys):
    network.add("10.0.0.1")
    network.add("10.0.0.2")

    exit_code = cli.main([str(host_file), "--package", str(package_file)])

    assert exit_code == cli.EXIT_OK
    out = capsys.readouterr().out
    assert "10.0.0.1" in out
    assert "2 succeeded, 0 failed" in out


def test_host_failure_sets_exit_status(network, host_file, package_file, capsys):
    network.add("10.0.0.1")

    exit_code = cli.main([str(host_file), "--package", str(package_file)])

    assert exit_code == cli.EXIT_HOST_FAILURES
    assert "1 succeeded, 1 failed" in capsys.readouterr().out


def test_host_failure_tolerated_when_configured(network, host_file, package_file, monkeypatch):
    network.add("10.0.0.1")
    monkeypatch.setattr(settings, "FAIL_ON_HOST_ERROR", False)

    assert cli.main([str(host_file), "--package", str(package_file)]) == cli.EXIT_OK


def test_missing_host_file_is_fatal(network, tmp_path, package_file):
    exit_code = cli.main([str(tmp_path / "missing.txt"), "--package", str(package_file)])

    assert exit_code == cli.EXIT_FATAL


def test_missing_package_is_fatal(network, host_file, tmp_path):
    server = network.add("10.0.0.1")

    exit_code = cli.main([str(host_file), "--package", str(tmp_path / "nope.zip")])

    assert exit_code == cli.EXIT_FATAL
    assert server.connect_count == 0


def test_overrides_reach_remote_commands(network, host_file, package_file):
    first = network.add("10.0.0.1")
    network.add("10.0.0.2")

    cli.main([
        str(host_file),
        "--package", str(package_file),
        "--remote-dir", "/srv",
        "--entry-point", "install.sh",
    ])

    assert "/srv/telegraf.zip" in first.files
    assert first.executed[-1] == "/srv/telegraf/install.sh"


def test_usage_error_without_host_file(capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main([])

    assert exc_info.value.code == 2


def test_parser_defaults():
    args = cli.build_parser().parse_args(["hosts.txt"])

    assert args.package_path is None
    assert args.connect_timeout is None


@pytest.mark.parametrize("option, value", [
    ("--timeout", "0"),
    ("--timeout", "abc"),
    ("--exec-timeout", "-1"),
])
def test_non_positive_timeouts_are_usage_errors(network, host_file, package_file, capsys, option, value):
    server = network.add("10.0.0.1")

    with pytest.raises(SystemExit) as exc_info:
        cli.main([str(host_file), "--package", str(package_file), option, value])

    assert exc_info.value.code == 2
    assert option in capsys.readouterr().err
    assert server.connect_count == 0


def test_timeouts_reach_config():
    args = cli.build_parser().parse_args(["hosts.txt", "--timeout", "2.5", "--exec-timeout", "30"])

    assert args.connect_timeout == 2.5
    assert args.exec_timeout == 30.0
