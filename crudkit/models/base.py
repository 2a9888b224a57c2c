from datetime import datetime, timezone

from sqlalchemy import func, inspect as sa_inspect

from ..extensions import db


def _utcnow():
    return datetime.now(timezone.utc)


class BaseModel(db.Model):
    """
    Abstract parent for every record handled by the CRUD and search helpers.

    ``id`` is assigned by the database on insert.  ``created_time`` and
    ``updated_time`` are maintained by column defaults and never set by the
    helpers themselves.
    """

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    created_time = db.Column(
        db.DateTime,
        nullable=False,
        default=_utcnow,
        server_default=func.current_timestamp(),
    )
    updated_time = db.Column(
        db.DateTime,
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.current_timestamp(),
    )

    def to_dict(self):
        data = {}
        for attr in sa_inspect(self).mapper.column_attrs:
            value = getattr(self, attr.key)
            if isinstance(value, datetime):
                value = value.isoformat()
            data[attr.key] = value
        return data

    def __repr__(self):
        return f"<{self.__class__.__name__} id={self.id}>"
