"""Gymnasium environments for Chroma Chaos."""

from __future__ import annotations

from gymnasium.envs.registration import register

# Register the default falling-block environment (12x20 board)
register(
    id="ChromaChaos-v0",
    entry_point="chroma_chaos.env.chroma_env:ChromaChaosEnv",
)

__all__ = ["ChromaChaos-v0"]
