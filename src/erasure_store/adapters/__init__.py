"""Adapters - concrete implementations of the erasure store ports."""
