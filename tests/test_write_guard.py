"""Tests for the write-access guard."""

import subprocess
from types import SimpleNamespace

import pytest

from ledgerkit import write_guard as write_guard_module
from ledgerkit.domain.errors import WriteBlockedError
from ledgerkit.write_guard import WriteGuard, require_write_access

LSOF_OUTPUT = """COMMAND     PID USER   FD   TYPE DEVICE SIZE/OFF NODE NAME
{command} 4242 me    12u   REG    1,4   401408 9999 /Users/me/Banktivity/ledger.db
"""


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def lsof_calls(monkeypatch):
    """Patch subprocess.run; tests set ``result`` to control lsof's answer."""
    fake = SimpleNamespace(
        calls=[], result=subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="")
    )

    def fake_run(args, **kwargs):
        fake.calls.append(args)
        result = fake.result
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(write_guard_module.subprocess, "run", fake_run)
    return fake


def lsof_result(command):
    return subprocess.CompletedProcess(args=[], returncode=0, stdout=LSOF_OUTPUT.format(command=command), stderr="")


def test_blocked_when_process_holds_file(lsof_calls):
    lsof_calls.result = lsof_result("Banktivity")
    guard = WriteGuard("/tmp/ledger.db", ["Banktivity"])

    reason = guard.check_write_allowed()

    assert reason is not None
    assert "Banktivity" in reason
    assert lsof_calls.calls[0][-3:] == ["+c", "0", "/tmp/ledger.db"]


def test_only_command_column_is_matched(lsof_calls):
    """The database path contains the name, but the process doesn't."""
    lsof_calls.result = lsof_result("sqlite3")
    guard = WriteGuard("/Users/me/Banktivity/ledger.db", ["Banktivity"])

    assert guard.check_write_allowed() is None


def test_nonzero_exit_means_not_blocked(lsof_calls):
    guard = WriteGuard("/tmp/ledger.db", ["Banktivity"])
    assert guard.check_write_allowed() is None


def test_missing_lsof_means_not_blocked(lsof_calls):
    lsof_calls.result = FileNotFoundError("lsof")
    guard = WriteGuard("/tmp/ledger.db", ["Banktivity"])
    assert guard.check_write_allowed() is None


def test_result_is_cached_for_ttl(lsof_calls):
    clock = FakeClock()
    lsof_calls.result = lsof_result("Banktivity")
    guard = WriteGuard("/tmp/ledger.db", ["Banktivity"], cache_ttl=3.0, clock=clock)

    assert guard.is_blocked()
    lsof_calls.result = subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="")
    clock.now += 2.9
    assert guard.is_blocked()
    assert len(lsof_calls.calls) == 1

    clock.now += 0.2
    assert not guard.is_blocked()
    assert len(lsof_calls.calls) == 2


def test_no_process_names_never_runs_lsof(lsof_calls):
    guard = WriteGuard("/tmp/ledger.db", [])
    assert guard.check_write_allowed() is None
    assert lsof_calls.calls == []


def test_require_write_access(lsof_calls):
    lsof_calls.result = lsof_result("Banktivity")
    guard = WriteGuard("/tmp/ledger.db", ["Banktivity"])

    with pytest.raises(WriteBlockedError, match="Banktivity"):
        require_write_access(guard)
    require_write_access(None)
