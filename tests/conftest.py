"""Shared fixtures: a fake `claude` executable backed by this interpreter."""
from __future__ import annotations

import json
import os
import stat
import sys
from pathlib import Path

import pytest

# Behaviour is keyed on the prompt (always the last argv entry):
#   "fail ..."   -> "boom" on stderr, exit 1
#   "sleep ..."  -> write pid file, sleep 30s
#   "plain ..."  -> non-JSON "done"
#   "is_error"   -> JSON with is_error true
#   otherwise    -> JSON echoing the prompt with a session id
_FAKE_CLAUDE_PY = r'''
import json, os, sys, time

args = sys.argv[1:]
log_path = os.environ.get("FAKE_CLAUDE_LOG")
if log_path:
    with open(log_path, "a", encoding="utf-8") as f:
        f.write(json.dumps({"argv": args, "cwd": os.getcwd()}) + "\n")

prompt = args[-1] if args else ""
resume = args[args.index("--resume") + 1] if "--resume" in args else None

if prompt.startswith("fail"):
    sys.stderr.write("boom")
    sys.exit(1)
if prompt.startswith("sleep"):
    pid_file = os.environ.get("FAKE_CLAUDE_PID_FILE")
    if pid_file:
        with open(pid_file, "w") as f:
            f.write(str(os.getpid()))
    time.sleep(30)
if prompt.startswith("plain"):
    print("done")
    sys.exit(0)

print(json.dumps({
    "type": "result",
    "result": "echo: " + prompt,
    "session_id": resume or "abc123",
    "is_error": prompt == "is_error",
    "duration_ms": 12,
    "total_cost_usd": 0.0,
}))
'''


@pytest.fixture
def fake_claude(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Absolute path to an executable fake claude CLI."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    script = bin_dir / "fake_claude.py"
    script.write_text(_FAKE_CLAUDE_PY, encoding="utf-8")
    wrapper = bin_dir / "claude"
    wrapper.write_text(
        f'#!/bin/sh\nexec "{sys.executable}" "{script}" "$@"\n',
        encoding="utf-8",
    )
    wrapper.chmod(wrapper.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    monkeypatch.setenv("FAKE_CLAUDE_LOG", str(tmp_path / "calls.jsonl"))
    monkeypatch.setenv("FAKE_CLAUDE_PID_FILE", str(tmp_path / "child.pid"))
    return wrapper


def read_fake_calls(tmp_path: Path) -> list[dict]:
    log = tmp_path / "calls.jsonl"
    if not log.exists():
        return []
    return [json.loads(line) for line in log.read_text(encoding="utf-8").splitlines()]


def pid_is_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True
