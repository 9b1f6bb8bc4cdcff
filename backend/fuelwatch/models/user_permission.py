from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from fuelwatch.database import Base


class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(50), nullable=False)
    display_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<UserRole(user_id='{self.user_id}', role='{self.role}')>"


class UserGroupPermission(Base):
    """Grants a user access to a whole group unless subgroup rows narrow it."""
    __tablename__ = "user_group_permissions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    group_id = Column(Integer, ForeignKey("tank_groups.id"), nullable=False)

    group = relationship("TankGroup")

    __table_args__ = (
        UniqueConstraint('user_id', 'group_id', name='uq_user_group_permissions'),
    )


class UserSubgroupPermission(Base):
    __tablename__ = "user_subgroup_permissions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    group_id = Column(Integer, ForeignKey("tank_groups.id"), nullable=False)
    subgroup_name = Column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'group_id', 'subgroup_name', name='uq_user_subgroup_permissions'),
    )
