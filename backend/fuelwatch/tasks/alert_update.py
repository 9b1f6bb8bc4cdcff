import logging
from datetime import datetime, timedelta

from fuelwatch.config import settings
from fuelwatch.database import SessionLocal
from fuelwatch.errors import DataUnavailable
from fuelwatch.services.alert_sink import AlertSink
from fuelwatch.services.tank_monitor import TankMonitor
from fuelwatch.services.tank_store import TankReadingStore

logger = logging.getLogger(__name__)


def evaluate_alerts(db, now: datetime = None) -> dict:
    """
    Evaluate alerts for every tank and reconcile them into the alert store.
    Tanks whose data could not be loaded keep their existing alerts.
    """
    now = now or datetime.utcnow()
    store = TankReadingStore(db)
    sink = AlertSink(db)
    monitor = TankMonitor()

    tanks = store.list_tanks()
    since = now - timedelta(days=settings.reading_lookback_days)
    outcomes = monitor.enrich(tanks, store.readings_loader(since), now=now)

    summary = {"tanks": len(outcomes), "opened": 0, "resolved": 0, "skipped": 0, "failed": 0}
    for outcome in outcomes:
        if outcome.error:
            summary["skipped"] += 1
            continue
        try:
            counts = sink.reconcile(outcome.tank.id, outcome.alerts, now=now)
            summary["opened"] += counts["opened"]
            summary["resolved"] += counts["resolved"]
        except Exception as e:
            logger.error(f"Error reconciling alerts for tank {outcome.tank.id}: {e}")
            db.rollback()
            summary["failed"] += 1
    return summary


def evaluate_alerts_job():
    """
    Scheduled job to re-evaluate alert conditions for all tanks.
    """
    logger.info("Starting scheduled alert evaluation")
    session = SessionLocal()
    try:
        summary = evaluate_alerts(session)
        logger.info(
            f"Alert evaluation: {summary['tanks']} tanks, {summary['opened']} opened, "
            f"{summary['resolved']} resolved, {summary['skipped']} skipped, {summary['failed']} failed"
        )
    except DataUnavailable as e:
        logger.error(f"Alert evaluation skipped, tank source unavailable: {e}")
    except Exception as e:
        logger.error(f"Alert evaluation job failed: {e}")
    finally:
        session.close()
    logger.info("Scheduled alert evaluation completed")
