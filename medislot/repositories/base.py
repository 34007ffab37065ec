import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ConflictError, PersistenceError

logger = logging.getLogger(__name__)


class BaseRepository:
    """Shared session handling; storage failures leave as domain errors."""

    def __init__(self, db: Session):
        self.db = db

    def commit(self, conflict: Optional[ConflictError] = None):
        """Commit the unit of work, rolling back and translating any failure.

        ``conflict`` is raised when the database rejects the write on a
        uniqueness constraint.
        """
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Integrity error on commit: {e.orig}")
            if conflict is not None:
                raise conflict from e
            raise ConflictError("The record conflicts with an existing one") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error on commit: {str(e)}")
            raise PersistenceError("The data store is currently unavailable") from e

    def flush(self, conflict: Optional[ConflictError] = None):
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            if conflict is not None:
                raise conflict from e
            raise ConflictError("The record conflicts with an existing one") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error on flush: {str(e)}")
            raise PersistenceError("The data store is currently unavailable") from e

    def save(self, instance, conflict: Optional[ConflictError] = None):
        self.db.add(instance)
        self.commit(conflict)
        self.db.refresh(instance)
        return instance
