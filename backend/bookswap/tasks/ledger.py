from __future__ import annotations

import logging
from typing import Any, Dict

from bookswap.core.celery_app import celery_app
from bookswap.models import PointsBalance, PointTransaction
from bookswap.services import ledger
from bookswap.tasks._db import task_session


logger = logging.getLogger(__name__)


# Celery 任务：按交易流水重算余额，只报告偏差不修正
@celery_app.task
def audit_ledger(user_id: str | None = None) -> Dict[str, Any]:
    with task_session() as db:
        if user_id:
            user_ids = [user_id]
        else:
            balances = {row[0] for row in db.query(PointsBalance.user_id).all()}
            logged = {row[0] for row in db.query(PointTransaction.user_id).distinct().all()}
            user_ids = sorted(balances | logged)

        drift = []
        for uid in user_ids:
            report = ledger.audit_balance(db, uid)
            if not report["consistent"]:
                logger.warning(
                    f"Ledger drift for user {uid}: balance {report['balance']}, "
                    f"transactions say {report['expected']}"
                )
                drift.append(report)
        logger.info(f"Ledger audit checked {len(user_ids)} users, {len(drift)} drifting")
        return {"checked": len(user_ids), "drift": drift}
