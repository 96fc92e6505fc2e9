"""Ports - interface definitions for the erasure store."""
