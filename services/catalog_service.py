"""
Catalog service: the registry of menu categories.

Categories are identified by the slug of their name. Once an item
references a category it cannot be deleted; the inventory ledger registers
itself as the reference check so the catalog does not need to know about
items.

Thread Safety:
    - All reads and writes go through _lock
    - Category objects are frozen, so returned values are safe to share
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from core.exceptions import InvalidStateError, NotFoundError, ValidationError
from models.catalog import Category, DEFAULT_CATEGORIES
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


class Catalog:
    """
    Static-ish registry of sellable categories.

    Insertion order is display order.
    """

    def __init__(self, categories: Optional[Iterable[Tuple[str, str]]] = None):
        """
        Initialize the catalog.

        Args:
            categories: Optional (id, name) pairs to register up front
        """
        self._categories: Dict[str, Category] = {}
        self._lock = threading.Lock()
        self._reference_check: Optional[Callable[[str], bool]] = None

        for category_id, name in categories or ():
            self.add_category(name, category_id=category_id)

    @classmethod
    def with_defaults(cls) -> "Catalog":
        """Catalog holding the four storefront categories."""
        return cls(DEFAULT_CATEGORIES)

    def set_reference_check(self, check: Callable[[str], bool]) -> None:
        """
        Register the callable that reports whether a category is in use.

        Args:
            check: Returns True if anything still references the category id
        """
        self._reference_check = check

    def add_category(self, name: str, category_id: Optional[str] = None) -> Category:
        """
        Register a new category.

        Raises:
            ValidationError: If the name is empty or the id is already taken
        """
        category = Category.create(name, category_id=category_id)
        with self._lock:
            if category.id in self._categories:
                raise ValidationError(
                    f"Category already exists: {category.id}",
                    field="name",
                    id=category.id,
                )
            self._categories[category.id] = category

        logger.info(f"Category added: {category.id} ({category.name})")
        return category

    def get(self, category_id: str) -> Category:
        """
        Look up a category.

        Raises:
            NotFoundError: If the id is unknown
        """
        with self._lock:
            category = self._categories.get(category_id)
        if category is None:
            raise NotFoundError("category", category_id)
        return category

    def exists(self, category_id: str) -> bool:
        with self._lock:
            return category_id in self._categories

    def list_categories(self) -> List[Category]:
        with self._lock:
            return list(self._categories.values())

    def name_of(self, category_id: str) -> str:
        """Display name for a category id, or the id itself if unknown."""
        with self._lock:
            category = self._categories.get(category_id)
        return category.name if category else category_id

    def remove_category(self, category_id: str) -> Category:
        """
        Delete a category nothing references.

        Raises:
            NotFoundError: If the id is unknown
            InvalidStateError: If any item still belongs to the category
        """
        with self._lock:
            category = self._categories.get(category_id)
            if category is None:
                raise NotFoundError("category", category_id)
            if self._reference_check and self._reference_check(category_id):
                raise InvalidStateError(
                    f"Category '{category_id}' still has items",
                    {"category_id": category_id},
                )
            del self._categories[category_id]

        logger.info(f"Category removed: {category_id}")
        return category

    def __len__(self) -> int:
        with self._lock:
            return len(self._categories)

    def __contains__(self, category_id: object) -> bool:
        with self._lock:
            return category_id in self._categories
