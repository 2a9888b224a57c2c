from enum import Enum


class ConditionKind(str, Enum):
    EQUALS = 'EQUALS'
    LIKE = 'LIKE'
    OR = 'OR'
    BETWEEN = 'BETWEEN'


class SortDirection(str, Enum):
    ASC = 'ASC'
    DESC = 'DESC'


class TransactionMode(str, Enum):
    # Commit when the unit of work returns, roll back when it raises.
    COMMIT_ON_SUCCESS = 'commit_on_success'
    # Commit whether the unit of work returned or raised.
    ALWAYS_COMMIT = 'always_commit'
