from sqlalchemy import Integer, Sequence
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, declared_attr


class Base(DeclarativeBase):
    # Shared sequence on PostgreSQL, ignored by SQLite which autoincrements
    id: Mapped[int] = mapped_column(Integer, Sequence("id_seq", start=1000), primary_key=True)

    @declared_attr
    def __tablename__(self) -> str:
        return self.__name__.lower()
