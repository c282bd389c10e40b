# backend/liftplan/routers/cron.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from liftplan.db import get_db
from liftplan.deps import require_cron_secret
from liftplan.schemas.generation import BulkGenerationResult
from liftplan.services.activation import PlanActivationService
from liftplan.services.generation import ExerciseGenerationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"], dependencies=[Depends(require_cron_secret)])


@router.post("/generate-exercises", response_model=BulkGenerationResult)
def generate_for_active_plans(db: Session = Depends(get_db)):
    logger.info("[cron] generating exercises for all active plans")
    return ExerciseGenerationService(db).generate_for_all_active_plans()


@router.post("/deactivate-expired")
def deactivate_expired_plans(db: Session = Depends(get_db)):
    count = PlanActivationService(db).deactivate_expired()
    logger.info(f"[cron] deactivated {count} expired plans")
    return {"success": True, "deactivated": count}
