from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, String, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from fuelwatch.database import Base


class DipReading(Base):
    """Manual dip or telemetry measurement of a tank's fuel level."""
    __tablename__ = "dip_readings"

    id = Column(Integer, primary_key=True, index=True)
    tank_id = Column(Integer, ForeignKey("fuel_tanks.id"), nullable=False, index=True)
    timestamp = Column(DateTime, nullable=False, index=True)
    level = Column(Float, nullable=True)  # Liters
    recorded_by = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    tank = relationship("FuelTank", back_populates="dip_readings")

    # Composite index for efficient queries
    __table_args__ = (
        Index('ix_dip_readings_tank_timestamp', 'tank_id', 'timestamp'),
    )

    def __repr__(self):
        return f"<DipReading(id={self.id}, timestamp='{self.timestamp}', level={self.level})>"
