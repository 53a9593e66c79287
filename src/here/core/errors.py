"""Exception hierarchy shared by the registry server and the client agent."""

from __future__ import annotations


class HereError(RuntimeError):
    """Base exception for all Here failures."""


class StoreError(HereError):
    """Base exception raised by the lease store."""


class StoreIOError(StoreError):
    """The backing file is unreadable, unwritable or holds corrupt content."""


class DuplicateKeyError(StoreError):
    """An identical lease is already present in the store."""


class NotFoundError(StoreError):
    """A query or removal matched nothing."""


class InvalidPasswordError(HereError):
    """The supplied password is missing or does not match the stored digest."""


class TransportError(HereError):
    """Talking to the registry server failed.

    Covers network failures, unexpected status codes, undecodable bodies and
    responses that report ``is_ok = false``.
    """


class ConfigError(HereError):
    """Configuration could not be loaded or created. Fatal at startup."""
