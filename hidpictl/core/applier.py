"""Staging and privileged installation/removal of override descriptors."""

from __future__ import annotations

import enum
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from hidpictl.core.config import Settings
from hidpictl.core.descriptor import override_path, vendor_dir
from hidpictl.core.errors import TransactionFailure
from hidpictl.core.model import Action, DisplayIdentity, OverrideDescriptor
from hidpictl.core.steps import (
    ChangeMode,
    ChangeOwner,
    CopyFile,
    MakeDirectory,
    RemoveFile,
    RemoveTree,
    Step,
    WritePreference,
    failed_step,
    render_script,
)
from hidpictl.elevation.base import ElevationChannel

LOGGER = logging.getLogger(__name__)

RESOLUTION_PREFERENCE_KEY = "DisplayResolutionEnabled"


class ApplyState(enum.Enum):
    IDLE = "idle"
    STAGED = "staged"
    TRANSACTING = "transacting"
    DONE = "done"


@dataclass
class Transaction:
    action: Action
    identity: DisplayIdentity
    state: ApplyState = ApplyState.IDLE
    succeeded: bool | None = None

    def advance(self, state: ApplyState) -> None:
        LOGGER.debug("%s %s: %s -> %s", self.action.value, self.identity, self.state.value, state.value)
        self.state = state

    def finish(self, succeeded: bool) -> None:
        self.advance(ApplyState.DONE)
        self.succeeded = succeeded


class PrivilegedApplier:
    """Runs one-shot enable/disable transactions through an elevation channel.

    Nothing is retried. A failed enable leaves the previous override in
    place because the copy step is the only one that touches it.
    """

    def __init__(self, channel: ElevationChannel, settings: Settings | None = None) -> None:
        self.channel = channel
        self.settings = settings or Settings()

    def enable_steps(self, identity: DisplayIdentity, staged: Path) -> tuple[Step, ...]:
        root = self.settings.overrides_root
        target = override_path(identity, root)
        return (
            MakeDirectory(vendor_dir(identity, root)),
            CopyFile(staged, target),
            ChangeOwner(target, self.settings.owner, self.settings.group),
            ChangeMode(target, self.settings.file_mode),
            RemoveFile(staged),
            WritePreference(self.settings.preference_domain, RESOLUTION_PREFERENCE_KEY, True),
        )

    def disable_steps(self, identity: DisplayIdentity) -> tuple[Step, ...]:
        return (RemoveTree(vendor_dir(identity, self.settings.overrides_root)),)

    def enable(self, descriptor: OverrideDescriptor) -> Transaction:
        transaction = Transaction(Action.ENABLE, descriptor.identity)
        staged = self._stage(descriptor)
        transaction.advance(ApplyState.STAGED)
        try:
            self._transact(transaction, self.enable_steps(descriptor.identity, staged))
        finally:
            _discard(staged)
        return transaction

    def disable(self, identity: DisplayIdentity) -> Transaction:
        transaction = Transaction(Action.DISABLE, identity)
        self._transact(transaction, self.disable_steps(identity))
        return transaction

    def _stage(self, descriptor: OverrideDescriptor) -> Path:
        identity = descriptor.identity
        try:
            fd, raw_path = tempfile.mkstemp(
                prefix=f"hidpi_display_{identity.vendor_id}-{identity.product_id}_",
                suffix=".plist",
                dir=self.settings.temp_dir,
            )
        except OSError as exc:
            raise TransactionFailure(f"Could not stage override descriptor: {exc}") from exc

        staged = Path(raw_path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(descriptor.text)
        except OSError as exc:
            _discard(staged)
            raise TransactionFailure(f"Could not stage override descriptor: {exc}") from exc
        LOGGER.debug("Staged override descriptor at %s", staged)
        return staged

    def _transact(self, transaction: Transaction, steps: tuple[Step, ...]) -> None:
        transaction.advance(ApplyState.TRANSACTING)
        try:
            result = self.channel.run(render_script(steps))
        except TransactionFailure:
            transaction.finish(False)
            raise

        if result.exit_status != 0:
            transaction.finish(False)
            step = failed_step(steps, result.exit_status)
            message = result.output or f"Privileged operation failed (exit status {result.exit_status})"
            LOGGER.info("Privileged %s failed with status %d", transaction.action.value, result.exit_status)
            raise TransactionFailure(
                message,
                exit_status=result.exit_status,
                output=result.output,
                failed_step=step.description if step else None,
            )
        transaction.finish(True)


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        LOGGER.debug("Could not remove staged file %s: %s", path, exc)
