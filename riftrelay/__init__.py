"""Rift Relay game server: run lifecycle, rewards and progression."""
