"""Custom column types."""

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

from shortlinks.core.timeutils import ensure_utc


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamp column.

    Values are bound as aware UTC and always come back aware, including
    from SQLite, which stores timestamps without an offset.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return ensure_utc(value)

    def process_result_value(self, value, dialect):
        return ensure_utc(value)
