from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from fuelwatch.database import Base


class TankAlert(Base):
    """Persisted alert condition, reconciled by (tank_id, kind)."""
    __tablename__ = "tank_alerts"

    id = Column(Integer, primary_key=True, index=True)
    tank_id = Column(Integer, ForeignKey("fuel_tanks.id"), nullable=False, index=True)
    kind = Column(String(50), nullable=False)  # critical_level, forecast_breach, stale_data
    message = Column(String(500), nullable=True)
    resolved = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    resolved_at = Column(DateTime, nullable=True)

    tank = relationship("FuelTank", back_populates="alerts")

    __table_args__ = (
        Index('ix_tank_alerts_tank_kind_resolved', 'tank_id', 'kind', 'resolved'),
    )

    def __repr__(self):
        return f"<TankAlert(id={self.id}, tank_id={self.tank_id}, kind='{self.kind}', resolved={self.resolved})>"
