#!/usr/bin/env python3
"""
base_manager.py
--------------------
Base manager providing common CRUD operations and utilities.
All entity managers inherit from this class.

Key Features:
    - Abstract base class with common CRUD scaffolding
    - Required-lookup helper raising NotFound
    - Scalar field updates driven by normalizer configs

Usage:
    Subclass BaseManager for each entity type and implement the
    entity-specific get/create/update/delete operations.

Example:
    class TagManager(BaseManager):
        def create(self, canvas_id: str, metadata: Dict[str, Any]) -> Tag:
            DataValidator.validate_required_fields(metadata, ["name"])
            with DatabaseOperation(self.logger, "create_tag"):
                ...
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from abc import ABC
from typing import Any, Dict, List, Optional, Protocol, Type, TypeVar

# --- Third party imports ---
from sqlalchemy import select
from sqlalchemy.orm import Mapped, Session

# --- Local imports ---
from chronicle.core.exceptions import NotFound
from chronicle.core.logging_manager import ChronicleLogger


class HasId(Protocol):
    """Protocol for objects that have an id attribute."""

    id: Mapped[str]


T = TypeVar("T", bound=HasId)


class BaseManager(ABC):
    """
    Abstract base manager providing common CRUD operations and utilities.

    Attributes:
        session: SQLAlchemy session for database operations
        logger: Optional logger for operation tracking
    """

    def __init__(self, session: Session, logger: Optional[ChronicleLogger] = None):
        """
        Initialize the base manager.

        Args:
            session: SQLAlchemy session
            logger: Optional logger for operation tracking
        """
        self.session = session
        self.logger = logger

    # -------------------------------------------------------------------------
    # Core Helper Methods
    # -------------------------------------------------------------------------

    def _get_by_id(self, model_class: Type[T], entity_id: Optional[str]) -> Optional[T]:
        """
        Get entity by ID.

        Returns:
            Entity if found, None otherwise
        """
        if not entity_id:
            return None
        return self.session.get(model_class, entity_id)

    def _require(self, model_class: Type[T], entity_id: Optional[str]) -> T:
        """
        Get entity by ID or raise.

        Raises:
            NotFound: If the entity does not exist
        """
        entity = self._get_by_id(model_class, entity_id)
        if entity is None:
            raise NotFound(f"{model_class.__name__} not found: {entity_id}")
        return entity

    def _get_all(
        self,
        model_class: Type[T],
        order_by: Optional[str] = None,
        **filters: Any,
    ) -> List[T]:
        """
        Get all entities of a type with optional filtering and ordering.

        Args:
            model_class: ORM model class
            order_by: Column name to order by (optional)
            **filters: Equality filter conditions

        Returns:
            List of entities
        """
        stmt = select(model_class).filter_by(**filters)
        if order_by and hasattr(model_class, order_by):
            stmt = stmt.order_by(getattr(model_class, order_by), model_class.id)
        return list(self.session.scalars(stmt))

    # -------------------------------------------------------------------------
    # Scalar Field Update Helpers
    # -------------------------------------------------------------------------

    def _update_scalar_fields(
        self,
        entity: Any,
        metadata: Dict[str, Any],
        field_configs: List[tuple],
    ) -> None:
        """
        Update multiple scalar fields from metadata using normalizers.

        Args:
            entity: Entity to update
            metadata: Dictionary containing field values
            field_configs: List of tuples:
                - (field_name, normalizer) for required fields
                - (field_name, normalizer, allow_none) for optional fields

        Example:
            self._update_scalar_fields(item, metadata, [
                ("title", DataValidator.normalize_string),
                ("summary", DataValidator.normalize_string, True),
            ])
        """
        for config in field_configs:
            field_name = config[0]
            normalizer = config[1]
            allow_none = config[2] if len(config) > 2 else False

            if field_name not in metadata:
                continue

            value = normalizer(metadata[field_name])
            if value is not None or allow_none:
                setattr(entity, field_name, value)
