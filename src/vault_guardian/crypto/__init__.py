"""Ethereum signing primitives."""
