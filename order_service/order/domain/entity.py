from sqlalchemy import BigInteger, Column, DateTime, Float, Integer, String

from order_service.config.db_session import Base


def _next_version(current):
    return 0 if current is None else current + 1


class OrderEntity(Base):
    __tablename__ = "orders"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    book_isbn = Column(String(255), nullable=False)
    book_name = Column(String(255), nullable=True)
    book_price = Column(Float, nullable=True)
    quantity = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False)
    created_date = Column(DateTime(timezone=True), nullable=False)
    last_modified_date = Column(DateTime(timezone=True), nullable=False)
    created_by = Column(String(255), nullable=False, index=True)
    last_modified_by = Column(String(255), nullable=False)
    version = Column(Integer, nullable=False)

    # UPDATE ... WHERE version = :old, incremented by _next_version
    __mapper_args__ = {
        "version_id_col": version,
        "version_id_generator": _next_version,
    }
