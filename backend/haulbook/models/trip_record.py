"""
Trip Record database model.

One haulage trip with the amounts it owes to and from each party. Written by
the trip entry screens; read-only here (input to the accounting summary).
"""

from sqlalchemy import Column, Integer, Numeric, Date, DateTime, ForeignKey
from sqlalchemy.sql import func
from backend.haulbook.db.session import Base


class TripRecord(Base):
    __tablename__ = "trip_records"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    date = Column(Date, nullable=False, index=True)

    # Party roles (any may be unknown)
    customer_id = Column(Integer, ForeignKey('parties.id'), nullable=True, index=True)
    quarry_owner_id = Column(Integer, ForeignKey('parties.id'), nullable=True, index=True)
    transporter_id = Column(Integer, ForeignKey('parties.id'), nullable=True, index=True)
    royalty_owner_id = Column(Integer, ForeignKey('parties.id'), nullable=True, index=True)

    # Quantities
    tonnage = Column(Numeric(12, 3), nullable=False, default=0)
    royalty_m3 = Column(Numeric(12, 3), nullable=False, default=0)

    # Financials
    revenue = Column(Numeric(14, 2), nullable=False, default=0)
    material_cost = Column(Numeric(14, 2), nullable=False, default=0)
    transport_cost = Column(Numeric(14, 2), nullable=False, default=0)
    royalty_cost = Column(Numeric(14, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<TripRecord(id={self.id}, date={self.date}, revenue={self.revenue})>"
