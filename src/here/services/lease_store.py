"""File-backed lease store.

The store loads the whole lease collection from its SQLite file when opened,
works on that in-memory copy, and writes the collection back on ``flush()``.
Nothing is cached between opens and no lock is held across operations: two
stores opened concurrently on the same file each see their own snapshot, and
the last one to flush wins. Leases are soft state that clients refresh every
lifetime, so a lost write heals on the next registration.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from types import TracebackType

from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from here.core.errors import DuplicateKeyError, NotFoundError, StoreIOError
from here.db.session import create_tables, open_engine
from here.models import LeaseRow
from here.schemas.presence import Lease

# Configure logger for this module
logger = logging.getLogger(__name__)

LeasePredicate = Callable[[Lease], bool]


class LeaseStore:
    """Keyed collection of leases over a single backing file."""

    def __init__(self, path: Path, engine: Engine, leases: list[Lease]) -> None:
        self.path = path
        self._engine = engine
        self._leases = leases

    @classmethod
    def open_or_create(cls, path: str | Path) -> LeaseStore:
        """Open the store at ``path``, creating an empty one if absent.

        Raises:
            StoreIOError: If the file cannot be opened, created or parsed.
        """
        path = Path(path)
        engine = open_engine(path)
        try:
            create_tables(engine)
            with Session(engine) as db:
                rows = db.scalars(select(LeaseRow).order_by(LeaseRow.seq)).all()
                leases = [row.to_lease() for row in rows]
        except SQLAlchemyError as exc:
            engine.dispose()
            raise StoreIOError(f"Cannot open lease store {path}: {exc}") from exc
        except (ValueError, TypeError) as exc:
            engine.dispose()
            raise StoreIOError(f"Corrupt lease in store {path}: {exc}") from exc

        return cls(path, engine, leases)

    def __enter__(self) -> LeaseStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._leases)

    @property
    def leases(self) -> tuple[Lease, ...]:
        """Snapshot of the loaded collection in insertion order."""
        return tuple(self._leases)

    def add(self, lease: Lease) -> None:
        """Append ``lease`` to the in-memory collection.

        Raises:
            DuplicateKeyError: If an equal lease is already present.
        """
        if lease in self._leases:
            raise DuplicateKeyError(
                f"Lease for account {lease.record.account!r} already stored"
            )
        self._leases.append(lease)

    def query_first(self, predicate: LeasePredicate) -> Lease:
        """Return the first lease, in insertion order, matching ``predicate``.

        Raises:
            NotFoundError: If no lease matches.
        """
        for lease in self._leases:
            if predicate(lease):
                return lease
        raise NotFoundError("No matching lease")

    def remove(self, lease: Lease) -> None:
        """Remove one lease equal to ``lease``.

        Raises:
            NotFoundError: If no equal lease is present.
        """
        try:
            self._leases.remove(lease)
        except ValueError as exc:
            raise NotFoundError(
                f"Lease for account {lease.record.account!r} not found"
            ) from exc

    def flush(self) -> None:
        """Replace the file contents with the in-memory collection.

        Raises:
            StoreIOError: If the file cannot be written.
        """
        try:
            with Session(self._engine) as db, db.begin():
                db.execute(delete(LeaseRow))
                db.add_all(LeaseRow.from_lease(lease) for lease in self._leases)
        except SQLAlchemyError as exc:
            raise StoreIOError(f"Cannot write lease store {self.path}: {exc}") from exc
        logger.debug("Flushed %d lease(s) to %s", len(self._leases), self.path)

    def close(self) -> None:
        """Release the engine. Unflushed changes are discarded."""
        self._engine.dispose()
