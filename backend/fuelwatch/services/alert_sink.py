from typing import Dict, Iterable, List, Optional
from datetime import datetime
import logging

from sqlalchemy.orm import Session

from fuelwatch.models import TankAlert
from fuelwatch.schemas.alert import AlertCondition

logger = logging.getLogger(__name__)


class AlertSink:
    """Stores evaluated alert conditions, one open row per (tank, kind)."""

    def __init__(self, db: Session):
        self.db = db

    def reconcile(
        self,
        tank_id: int,
        conditions: Iterable[AlertCondition],
        now: Optional[datetime] = None,
    ) -> Dict[str, int]:
        """
        Open rows for newly raised kinds, resolve open rows whose kind is no
        longer raised, and refresh the message on the rest.
        """
        now = now or datetime.utcnow()
        raised = {c.kind.value: c for c in conditions if c.tank_id == tank_id and not c.resolved}

        open_rows = self.db.query(TankAlert).filter(
            TankAlert.tank_id == tank_id,
            TankAlert.resolved == False
        ).order_by(TankAlert.created_at, TankAlert.id).all()

        opened = resolved = unchanged = 0
        kept = set()

        for row in open_rows:
            # Extra open rows for an already-kept kind are duplicates
            if row.kind in raised and row.kind not in kept:
                row.message = raised[row.kind].message
                kept.add(row.kind)
                unchanged += 1
            else:
                row.resolved = True
                row.resolved_at = now
                resolved += 1

        for kind, condition in raised.items():
            if kind in kept:
                continue
            self.db.add(TankAlert(
                tank_id=tank_id,
                kind=kind,
                message=condition.message,
                resolved=False,
                created_at=now
            ))
            opened += 1

        self.db.commit()

        if opened or resolved:
            logger.info(f"Tank {tank_id} alerts: {opened} opened, {resolved} resolved")

        return {"opened": opened, "resolved": resolved, "unchanged": unchanged}

    def active_alerts(self, tank_ids: Optional[Iterable[int]] = None) -> List[TankAlert]:
        query = self.db.query(TankAlert).filter(TankAlert.resolved == False)
        if tank_ids is not None:
            tank_ids = list(tank_ids)
            if not tank_ids:
                return []
            query = query.filter(TankAlert.tank_id.in_(tank_ids))
        return query.order_by(TankAlert.created_at.desc(), TankAlert.id.desc()).all()
