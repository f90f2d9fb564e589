"""Integraciones con frameworks externos."""
