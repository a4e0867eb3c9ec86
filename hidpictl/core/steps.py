"""Typed privileged filesystem steps and their shell rendering.

A transaction is an ordered tuple of steps. It is rendered into one bash
script so the whole transaction needs a single elevation prompt. Each step
exits with ``STEP_EXIT_BASE + <1-based index>`` on failure, which lets the
caller tell which step broke.
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import PurePath

STEP_EXIT_BASE = 100

_PRELUDE = """#!/bin/bash
set -u

fail() {
    echo "hidpictl: step $1 ($2) failed" >&2
    exit $((%d + $1))
}

""" % STEP_EXIT_BASE


@dataclass(frozen=True)
class MakeDirectory:
    path: PurePath

    @property
    def description(self) -> str:
        return f"create directory {self.path}"

    def argv(self) -> list[str]:
        return ["mkdir", "-p", str(self.path)]


@dataclass(frozen=True)
class CopyFile:
    source: PurePath
    destination: PurePath

    @property
    def description(self) -> str:
        return f"install {self.destination}"

    def argv(self) -> list[str]:
        return ["cp", str(self.source), str(self.destination)]


@dataclass(frozen=True)
class ChangeOwner:
    path: PurePath
    owner: str
    group: str

    @property
    def description(self) -> str:
        return f"set owner {self.owner}:{self.group} on {self.path}"

    def argv(self) -> list[str]:
        return ["chown", f"{self.owner}:{self.group}", str(self.path)]


@dataclass(frozen=True)
class ChangeMode:
    path: PurePath
    mode: int

    @property
    def description(self) -> str:
        return f"set mode {self.mode:04o} on {self.path}"

    def argv(self) -> list[str]:
        return ["chmod", f"{self.mode:o}", str(self.path)]


@dataclass(frozen=True)
class RemoveFile:
    path: PurePath

    @property
    def description(self) -> str:
        return f"remove {self.path}"

    def argv(self) -> list[str]:
        return ["rm", "-f", str(self.path)]


@dataclass(frozen=True)
class RemoveTree:
    path: PurePath

    @property
    def description(self) -> str:
        return f"remove directory {self.path}"

    def argv(self) -> list[str]:
        return ["rm", "-rf", str(self.path)]


@dataclass(frozen=True)
class WritePreference:
    domain: str
    key: str
    value: bool

    @property
    def description(self) -> str:
        return f"set {self.key} in {self.domain}"

    def argv(self) -> list[str]:
        return ["defaults", "write", self.domain, self.key, "-bool", "YES" if self.value else "NO"]


Step = MakeDirectory | CopyFile | ChangeOwner | ChangeMode | RemoveFile | RemoveTree | WritePreference


def render_script(steps: Sequence[Step]) -> str:
    lines = [_PRELUDE]
    for index, step in enumerate(steps, start=1):
        command = shlex.join(step.argv())
        lines.append(f"{command} || fail {index} {shlex.quote(step.description)}\n")
    return "".join(lines)


def failed_step(steps: Sequence[Step], exit_status: int) -> Step | None:
    index = exit_status - STEP_EXIT_BASE
    if 1 <= index <= len(steps):
        return steps[index - 1]
    return None
