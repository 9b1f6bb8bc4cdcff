from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from fuelwatch.database import Base


class TankGroup(Base):
    __tablename__ = "tank_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    subgroups = relationship(
        "TankSubgroup",
        back_populates="group",
        order_by="TankSubgroup.position",
        cascade="all, delete-orphan",
    )
    tanks = relationship("FuelTank", back_populates="group")

    def __repr__(self):
        return f"<TankGroup(id={self.id}, name='{self.name}')>"


class TankSubgroup(Base):
    """Named subdivision of a group (e.g. a depot). Names are unique per group."""
    __tablename__ = "tank_subgroups"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("tank_groups.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    group = relationship("TankGroup", back_populates="subgroups")

    __table_args__ = (
        UniqueConstraint('group_id', 'name', name='uq_tank_subgroups_group_name'),
    )

    def __repr__(self):
        return f"<TankSubgroup(id={self.id}, group_id={self.group_id}, name='{self.name}')>"
