import os

# Settings are read at import time; keep tests off any real database
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fuelwatch.database import Base, get_db
from fuelwatch.models import (
    TankGroup,
    TankSubgroup,
    FuelTank,
    DipReading,
    UserRole,
    UserGroupPermission,
    UserSubgroupPermission,
)
from fuelwatch.schemas.tank import TankRecord


def make_tank(**overrides) -> TankRecord:
    fields = {
        "id": 1,
        "group_name": "GSF Depots",
        "subgroup": "Narrogin",
        "location": "Narrogin Diesel 1",
        "product_type": "Diesel",
        "safe_level": 10000.0,
        "current_level": 5000.0,
        "min_level": 500.0,
    }
    fields.update(overrides)
    return TankRecord(**fields)


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def now():
    return datetime.utcnow().replace(microsecond=0)


@pytest.fixture
def seeded(db, now):
    """
    Two groups and four tanks:
      1 GSF Depots / Narrogin   18% (critical), recent readings
      2 GSF Depots / Merredin   75% (normal), one fresh reading
      3 BGC / -                 30% (low), no readings
      4 GSF Depots / -          no safe level (unknown)
    """
    gsf = TankGroup(name="GSF Depots")
    gsf.subgroups = [
        TankSubgroup(name="Narrogin", position=0),
        TankSubgroup(name="Merredin", position=1),
    ]
    bgc = TankGroup(name="BGC")
    db.add_all([gsf, bgc])
    db.flush()

    tanks = [
        FuelTank(id=1, group_id=gsf.id, subgroup="Narrogin", location="Narrogin Diesel 1",
                 product_type="Diesel", safe_level=10000.0, current_level=1800.0, min_level=500.0),
        FuelTank(id=2, group_id=gsf.id, subgroup="Merredin", location="Merredin ULP",
                 product_type="ULP", safe_level=20000.0, current_level=15000.0, min_level=1000.0),
        FuelTank(id=3, group_id=bgc.id, subgroup=None, location="BGC Yard",
                 product_type="Diesel", safe_level=8000.0, current_level=2400.0, min_level=0.0),
        FuelTank(id=4, group_id=gsf.id, subgroup=None, location="GSF Spare",
                 product_type="Diesel", safe_level=None, current_level=500.0, min_level=None),
    ]
    db.add_all(tanks)

    db.add_all([
        DipReading(tank_id=1, timestamp=now - timedelta(days=2), level=2600.0),
        DipReading(tank_id=1, timestamp=now - timedelta(days=1), level=2200.0),
        DipReading(tank_id=1, timestamp=now - timedelta(minutes=30), level=1800.0),
        DipReading(tank_id=2, timestamp=now - timedelta(hours=1), level=15000.0),
    ])

    db.add_all([
        UserRole(user_id="admin-1", role="admin", display_name="Admin"),
        UserRole(user_id="mgr-1", role="manager", display_name="Manager"),
        UserRole(user_id="viewer-1", role="viewer", display_name="Viewer"),
        UserRole(user_id="sched-1", role="scheduler", display_name="Scheduler"),
        UserGroupPermission(user_id="mgr-1", group_id=gsf.id),
        UserSubgroupPermission(user_id="mgr-1", group_id=gsf.id, subgroup_name="Narrogin"),
        UserGroupPermission(user_id="viewer-1", group_id=gsf.id),
    ])
    db.commit()
    return {"gsf": gsf, "bgc": bgc, "tanks": tanks}


@pytest.fixture
def client(db):
    from fuelwatch.main import app
    from fuelwatch.api.deps import scope_cache

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    scope_cache.invalidate()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        scope_cache.invalidate()


@pytest.fixture
def tank_factory():
    return make_tank
