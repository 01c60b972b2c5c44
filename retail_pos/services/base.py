"""Shared plumbing for services that own a database transaction per call."""

from contextlib import contextmanager
from typing import Iterable, Dict, Iterator, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..database import get_session_factory
from ..models.tables import Product
from ..utils.config import get_config
from ..utils.exceptions import BaseAppException, BusinessRuleError, NotFoundError, TransactionError
from ..utils.logger import get_error_logger


class TransactionalService:
    """
    Base class for services whose public methods are each one transaction.

    Application errors raised inside ``transaction()`` roll back and
    propagate unchanged; database errors roll back and surface as an
    opaque ``TransactionError``.
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.config = get_config()
        self.session_factory = session_factory or get_session_factory()
        self.error_logger = get_error_logger()

    @contextmanager
    def transaction(self, operation: str, conflict_message: Optional[str] = None) -> Iterator[Session]:
        """
        Open a session, begin, and commit on exit or roll back on error.

        Args:
            operation: Human-readable gerund for error messages
            conflict_message: If set, integrity violations become a
                BusinessRuleError with this message
        """
        try:
            with self.session_factory.begin() as session:
                yield session
        except BaseAppException:
            raise
        except IntegrityError as e:
            if conflict_message:
                raise BusinessRuleError(conflict_message) from e
            self.error_logger.error(f"Integrity error while {operation}: {str(e)}", exc_info=True)
            raise TransactionError(f"Something went wrong while {operation}") from e
        except SQLAlchemyError as e:
            self.error_logger.error(f"Database error while {operation}: {str(e)}", exc_info=True)
            raise TransactionError(f"Something went wrong while {operation}") from e

    @staticmethod
    def load_products(session: Session, shop_id: int, product_ids: Iterable[int]) -> Dict[int, Product]:
        """
        Load the shop's products by id.

        Raises:
            NotFoundError: If any id is not a product of this shop
        """
        wanted = set(product_ids)
        if not wanted:
            return {}

        products = session.scalars(
            select(Product).where(Product.shop_id == shop_id, Product.id.in_(wanted))
        ).all()
        found = {product.id: product for product in products}

        missing = sorted(wanted - set(found))
        if missing:
            raise NotFoundError(
                f"Product not found: {', '.join(str(pid) for pid in missing)}",
                details={"productIds": missing}
            )
        return found
