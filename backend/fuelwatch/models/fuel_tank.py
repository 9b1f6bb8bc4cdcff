from sqlalchemy import Column, Integer, String, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from fuelwatch.database import Base


class FuelTank(Base):
    __tablename__ = "fuel_tanks"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("tank_groups.id"), nullable=False, index=True)
    subgroup = Column(String(255), nullable=True, index=True)
    location = Column(String(255), nullable=False)
    product_type = Column(String(100), nullable=True)  # Diesel, ULP, ...

    # Levels in liters. safe_level is the usable capacity.
    safe_level = Column(Float, nullable=True)
    min_level = Column(Float, nullable=True, default=0.0)
    current_level = Column(Float, nullable=True)
    current_level_percent = Column(Float, nullable=True)  # Denormalised by ingestion, never trusted

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    group = relationship("TankGroup", back_populates="tanks")
    dip_readings = relationship("DipReading", back_populates="tank", order_by="DipReading.timestamp")
    alerts = relationship("TankAlert", back_populates="tank")

    def __repr__(self):
        return f"<FuelTank(id={self.id}, location='{self.location}')>"
