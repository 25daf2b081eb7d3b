"""Noise filtering for relayed workflow logs.

Docker image pulls and git clones print one progress line per layer or
object; those lines are dropped before relaying.
"""

from __future__ import annotations

import re

_DOCKER_PULL_NOISE = re.compile(
    r"(Pulling fs layer|Waiting|Verifying Checksum|Download complete|Pull complete)$"
)
_GIT_NOISE = re.compile(r"remote: Counting objects|remote: Compressing objects")


def is_noise(line: str) -> bool:
    """True when `line` is docker pull or git transfer progress."""

    if _DOCKER_PULL_NOISE.search(line.strip()):
        return True
    return _GIT_NOISE.search(line) is not None


def split_log_lines(text: str) -> list[str]:
    return text.split("\n")
