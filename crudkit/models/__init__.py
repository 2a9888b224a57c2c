from ..extensions import db
from .base import BaseModel
from .enumerations import ConditionKind, SortDirection, TransactionMode

__all__ = [
    "db",
    "BaseModel",
    "ConditionKind",
    "SortDirection",
    "TransactionMode",
]
