from datetime import date

from sqlalchemy import Column, Date, Integer, String

from app.database.base import Base


class Equipment(Base):
    __tablename__ = "equipment"
    # AUTOINCREMENT deixa o contador visivel em sqlite_sequence.
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    date_register = Column(Date, nullable=False, default=date.today)
    state = Column(String(20), nullable=False, index=True)
    customer = Column(String(50), nullable=False, index=True)
    user = Column(String(50), nullable=True)
    category = Column(String(20), nullable=False, index=True)
    brand = Column(String(30), nullable=False)
    model = Column(String(30), nullable=True)
    serial_number = Column(String(20), nullable=True, index=True)
    processor = Column(String(30), nullable=True)
    memory_ram = Column(String(15), nullable=True)
    storage = Column(String(15), nullable=True)
    operating_system = Column(String(20), nullable=True)
    note = Column(String(500), nullable=True)
    responsible = Column(String(30), nullable=False)


EQUIPMENT_FIELDS = (
    "date_register",
    "state",
    "customer",
    "user",
    "category",
    "brand",
    "model",
    "serial_number",
    "processor",
    "memory_ram",
    "storage",
    "operating_system",
    "note",
    "responsible",
)
