#!/usr/bin/env python3
"""
Daily asset health recalculation.
Rescores every active asset across all tenants and records one alert per
tenant with high/critical assets. Intended to be run from cron.
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from models.base import Base, engine, SessionLocal
from core.asset_health_service import AssetHealthService

def run_recalculation():
    print("=" * 70)
    print("ASSET HEALTH - DAILY RECALCULATION")
    print("=" * 70)
    print(f"Model version: {settings.health_model_version}")
    print(f"Batch size: {settings.recalculation_batch_size}")
    print()

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        service = AssetHealthService.from_settings(db, settings)
        result = service.recalculate_all()
    finally:
        db.close()

    if "summary" not in result:
        print(result.get("message", "Nothing to do"))
        return 0

    summary = result["summary"]
    print(f"  Processed:      {summary['total_processed']}")
    print(f"  Successful:     {summary['successful']}")
    print(f"  Failed:         {summary['failed']}")
    print(f"  Critical:       {summary['critical_assets']}")
    print(f"  High Risk:      {summary['high_risk_assets']}")
    print(f"  Execution time: {summary['execution_time_ms']}ms")

    return 1 if summary["failed"] else 0

if __name__ == "__main__":
    sys.exit(run_recalculation())
