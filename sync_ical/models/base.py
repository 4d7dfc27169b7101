from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Properties, units, channel connections, reservations, availability blocks
    and sync logs all share this metadata, which is what Alembic and the test
    suite create the schema from.
    """

    pass
