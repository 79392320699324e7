"""Levo CI build-step runner."""
