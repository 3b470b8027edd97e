from sqlalchemy import Column, Integer, String, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pos_app.database import Base


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    bill_number = Column(String, nullable=False, unique=True, index=True)
    customer_id = Column(Integer, nullable=True, index=True)  # Directory customer, if attached
    customer_name = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    payment_method = Column(String, nullable=False, default="cash")  # cash, card, upi
    currency = Column(String, default="INR")
    discount_percent = Column(Numeric(5, 2), nullable=False)
    tax_percent = Column(Numeric(5, 2), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False)
    tax_amount = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    opened_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    sale_lines = relationship(
        "SaleLine", back_populates="sale", cascade="all, delete-orphan", order_by="SaleLine.line_no"
    )
