"""Shared fixtures.

The ``fake_gpg`` fixture puts a small Python stand-in for gpg at the front
of PATH so the real subprocess path is exercised without a keyring. It
"encrypts" by base64 with a marker prefix and knows a fixed set of
recipients (``FAKE_GPG_KEYS``, comma separated).
"""

import stat
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from materiatrack.common.config.settings import reset_config
from materiatrack.models import EntryWithDetails, TimeEntry


KNOWN_RECIPIENT = "alice@example.com"

FAKE_GPG_SCRIPT = r'''#!{python}
import base64
import os
import sys

MARKER = b"FAKEGPG:"
KEYS = [k for k in os.environ.get("FAKE_GPG_KEYS", "").split(",") if k]


def fail(message, code=2):
    sys.stderr.write(message)
    sys.exit(code)


def value_after(args, flag):
    if flag in args:
        index = args.index(flag)
        if index + 1 < len(args):
            return args[index + 1]
    return None


def positional(args):
    skip = {"--recipient", "--output", "--cipher-algo"}
    result = []
    previous = None
    for arg in args:
        if not arg.startswith("--") and previous not in skip:
            result.append(arg)
        previous = arg
    return result


def listing(kind, ident):
    return (
        f"{kind}:u:4096:1:ABCDEF0123456789:1700000000:1900000000::u:::scESC:\n"
        f"uid:u::::1700000000::HASH::Test User <{ident}>::::::::::0:\n"
    )


def read_input(args):
    names = positional(args)
    if names:
        with open(names[-1], "rb") as f:
            return f.read()
    return sys.stdin.buffer.read()


def write_output(args, data):
    target = value_after(args, "--output")
    if target:
        with open(target, "wb") as f:
            f.write(data)
    else:
        sys.stdout.buffer.write(data)


def main():
    args = sys.argv[1:]

    if "--version" in args:
        sys.stdout.write("gpg (GnuPG) 2.4.0\n")
        return

    if "--list-keys" in args or "--list-secret-keys" in args:
        wanted = positional(args)
        kind = "sec" if "--list-secret-keys" in args else "pub"
        if wanted:
            if wanted[0] not in KEYS:
                fail(f"gpg: error reading key: No public key\n")
            sys.stdout.write(listing(kind, wanted[0]))
        else:
            sys.stdout.write("".join(listing(kind, k) for k in KEYS))
        return

    if "--encrypt" in args:
        recipient = value_after(args, "--recipient")
        if recipient not in KEYS:
            fail(
                f"gpg: {recipient}: skipped: No public key\n"
                f"gpg: [stdin]: encryption failed: No public key\n"
            )
        write_output(args, MARKER + base64.b64encode(read_input(args)))
        return

    if "--symmetric" in args:
        write_output(args, MARKER + base64.b64encode(read_input(args)))
        return

    if "--decrypt" in args:
        data = read_input(args)
        if not data.startswith(MARKER):
            fail("gpg: no valid OpenPGP data found.\ngpg: decrypt_message failed: Unknown system error\n")
        write_output(args, base64.b64decode(data[len(MARKER):]))
        return

    fail(f"gpg: unsupported invocation: {args}\n")


main()
'''


def _write_executable(path: Path, content: str) -> None:
    path.write_text(content, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


@pytest.fixture(autouse=True)
def clean_config():
    """Reset the configuration singleton around every test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def fake_gpg(tmp_path, monkeypatch):
    """Install a fake ``gpg`` as the only executable on PATH."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    gpg_path = bin_dir / "gpg"
    _write_executable(gpg_path, FAKE_GPG_SCRIPT.replace("{python}", sys.executable))

    monkeypatch.setenv("PATH", str(bin_dir))
    monkeypatch.setenv("FAKE_GPG_KEYS", KNOWN_RECIPIENT)
    return gpg_path


@pytest.fixture
def no_gpg(tmp_path, monkeypatch):
    """Make sure no gpg executable can be found."""
    empty = tmp_path / "empty-bin"
    empty.mkdir()
    monkeypatch.setenv("PATH", str(empty))
    return empty


def make_entry(
    entry_id: int,
    project: str = "alpha",
    task: str = "t1",
    notes=None,
    commits=None,
    start=None,
    minutes: int = 90,
) -> EntryWithDetails:
    start = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
    return EntryWithDetails(
        entry=TimeEntry(
            id=entry_id,
            project_id=1,
            task_id=1,
            start=start,
            end=start + timedelta(minutes=minutes),
            notes=notes,
            git_commits=commits or [],
        ),
        project_name=project,
        task_name=task,
    )


@pytest.fixture
def entry_factory():
    """Build EntryWithDetails records with sensible defaults."""
    return make_entry


@pytest.fixture
def sample_entries():
    """Three entries, two of them carrying notes and commits."""
    return [
        make_entry(1, notes="fixed the flux capacitor", commits=["abc1234"]),
        make_entry(
            2,
            project="beta",
            notes="call with ACME legal",
            start=datetime(2024, 3, 5, 14, 0, tzinfo=timezone.utc),
            minutes=30,
        ),
        make_entry(3, start=datetime(2024, 3, 10, 8, 0, tzinfo=timezone.utc), minutes=45),
    ]


@pytest.fixture
def user_env(monkeypatch):
    """Pin the recorded actor."""
    monkeypatch.setenv("USER", "tester")
    return "tester"
