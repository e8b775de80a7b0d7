"""
Shared Database Infrastructure
Generic soft-delete aware repository and the async unit of work
"""
from src.shared.infrastructure.database.sqlalchemy_repository import SQLAlchemyRepository
from src.shared.infrastructure.database.sqlalchemy_unit_of_work import SQLAlchemyUnitOfWork

__all__ = [
    "SQLAlchemyRepository",
    "SQLAlchemyUnitOfWork",
]
