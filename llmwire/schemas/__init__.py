"""Typed request/response records per provider."""
