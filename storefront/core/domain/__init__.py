"""
Domain Layer - Core DDD building blocks

This module provides base classes for Domain-Driven Design:
- Entities: Objects with identity and lifecycle
- Value Objects: Immutable objects compared by value
- Exceptions: Domain-specific error handling
"""

from storefront.core.domain.entities import AggregateRoot, Entity, utc_now
from storefront.core.domain.exceptions import (
    AuthorizationException,
    BusinessRuleViolationException,
    ConcurrencyException,
    DomainException,
    DuplicateEntityException,
    EntityNotFoundException,
    InvalidOperationException,
    PaymentException,
    ValidationException,
)
from storefront.core.domain.value_objects import Email, Money, StatusEnum, ValueObject

__all__ = [
    # Entities
    "Entity",
    "AggregateRoot",
    "utc_now",
    # Value Objects
    "ValueObject",
    "Money",
    "Email",
    "StatusEnum",
    # Exceptions
    "DomainException",
    "ValidationException",
    "EntityNotFoundException",
    "BusinessRuleViolationException",
    "InvalidOperationException",
    "ConcurrencyException",
    "AuthorizationException",
    "DuplicateEntityException",
    "PaymentException",
]
