import logging
import subprocess
import threading
from unittest.mock import MagicMock, patch

import pytest

from host_discovery.icmp import PingProbe


@pytest.mark.parametrize(
    "system,address,expected",
    [
        ("Linux", "10.0.0.1", ["ping", "-c", "1", "-W", "2", "10.0.0.1"]),
        ("Linux", "fe80::1", ["ping", "-6", "-c", "1", "-W", "2", "fe80::1"]),
        ("Darwin", "10.0.0.1", ["ping", "-c", "1", "-W", "2000", "10.0.0.1"]),
        ("Windows", "10.0.0.1", ["ping", "-n", "1", "-w", "2000", "10.0.0.1"]),
    ],
)
def test_build_command(system, address, expected):
    assert PingProbe(2.0, system=system).build_command(address) == expected


def test_subsecond_timeout_rounds_up_on_linux():
    assert PingProbe(0.3, system="Linux").build_command("10.0.0.1")[4] == "1"


@patch("host_discovery.icmp.subprocess.run")
def test_reply_is_alive(mock_run):
    mock_run.return_value = MagicMock(returncode=0)
    r = PingProbe(1.0, system="Linux").probe("10.0.0.1")
    assert r.alive
    assert r.probe_name == "ICMP Ping"
    assert r.detail.startswith("Response in ")
    mock_run.assert_called_once()


@patch("host_discovery.icmp.subprocess.run")
def test_no_reply(mock_run):
    mock_run.return_value = MagicMock(returncode=1)
    r = PingProbe(1.0, system="Linux").probe("10.0.0.1")
    assert not r.alive
    assert r.detail == "No response"


@patch("host_discovery.icmp.subprocess.run", side_effect=subprocess.TimeoutExpired("ping", 2))
def test_timeout_is_not_alive(mock_run):
    r = PingProbe(1.0, system="Linux").probe("10.0.0.1")
    assert not r.alive
    assert r.detail == "No response"


@patch("host_discovery.icmp.subprocess.run", side_effect=FileNotFoundError("ping"))
def test_missing_binary_warns_once(mock_run, caplog):
    probe = PingProbe(1.0, system="Linux")
    with caplog.at_level(logging.WARNING, logger="host_discovery.icmp"):
        first = probe.probe("10.0.0.1")
        second = probe.probe("10.0.0.2")
    assert not first.alive and not second.alive
    assert first.detail == "ping unavailable"
    assert caplog.text.count("ping command not found") == 1


@patch("host_discovery.icmp.subprocess.run", side_effect=FileNotFoundError("ping"))
def test_warn_latch_is_per_instance(mock_run, caplog):
    with caplog.at_level(logging.WARNING, logger="host_discovery.icmp"):
        PingProbe(1.0, system="Linux").probe("10.0.0.1")
        PingProbe(1.0, system="Linux").probe("10.0.0.1")
    assert caplog.text.count("ping command not found") == 2


@patch("host_discovery.icmp.subprocess.run")
def test_cancelled_skips_ping(mock_run):
    cancel = threading.Event()
    cancel.set()
    r = PingProbe(1.0).probe("10.0.0.1", cancel)
    assert not r.alive
    mock_run.assert_not_called()


@patch("host_discovery.icmp.subprocess.run")
def test_invalid_address_never_reaches_shell(mock_run):
    r = PingProbe(1.0).probe("-c 1000 10.0.0.1")
    assert not r.alive
    mock_run.assert_not_called()


@patch("host_discovery.icmp.subprocess.run")
def test_ping_runs_in_own_session(mock_run):
    mock_run.return_value = MagicMock(returncode=0)
    PingProbe(1.0, system="Linux").probe("10.0.0.1")
    assert mock_run.call_args.kwargs["start_new_session"] is True
