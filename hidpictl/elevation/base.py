"""Elevation channel interface."""

from __future__ import annotations

from typing import Protocol

from hidpictl.core.model import ChannelOutput


class ElevationChannel(Protocol):
    def run(self, script: str) -> ChannelOutput:
        """Run a bash script with administrator rights and capture its output."""
