from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from sqlalchemy.engine import Engine

from helper_api.schemas import (
    ConcernQuestions,
    ConcernRequest,
    EstimateRequest,
    LaborRateGroupIn,
    PendingJobIn,
    PricingRequest,
    ShopRequest,
)
from helper_api.store import SqlConfigStore, make_engine
from helper_engine.src.errors import NotConfigured, TekmetricError
from helper_engine.src.models import LaborRateGroup
from helper_engine.src.pending_jobs import PendingJobCache
from helper_engine.src.store import ConfigStore, LaborRateGroupBook
from helper_engine.src.symptoms import build_questions_context, category_names, questions_for
from helper_engine.src.tekmetric import SHOP_NAMES, TekmetricClient


app = FastAPI(title="HEART Helper")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_engine: Optional[Engine] = None


def get_store() -> ConfigStore:
    global _engine
    if _engine is None:
        _engine = make_engine()
    return SqlConfigStore(_engine)


def get_tekmetric() -> TekmetricClient:
    return TekmetricClient()


def to_group(body: LaborRateGroupIn) -> LaborRateGroup:
    makes = [m.strip() for m in body.makes if m.strip()]
    if not makes:
        raise HTTPException(status_code=400, detail="makes must be a non-empty array")
    return LaborRateGroup(name=body.name.strip(), makes=makes, labor_rate=round(body.laborRate))


# ─── Concern intake ───

@app.post("/concerns/questions", response_model=ConcernQuestions)
def concern_questions(body: ConcernRequest):
    category, questions = questions_for(body.concern)
    return ConcernQuestions(
        category=category.name if category else None,
        questions=questions,
        context=build_questions_context(body.concern),
    )


@app.get("/symptom-categories")
def symptom_categories():
    return category_names()


# ─── Labor rate groups ───

@app.get("/labor-rate-groups")
def list_labor_rate_groups(store: ConfigStore = Depends(get_store)):
    return [g.to_store() for g in LaborRateGroupBook(store).all()]


@app.post("/labor-rate-groups", status_code=201)
def create_labor_rate_group(body: LaborRateGroupIn, store: ConfigStore = Depends(get_store)):
    group = to_group(body)
    index = LaborRateGroupBook(store).add(group)
    return {"index": index, **group.to_store()}


@app.put("/labor-rate-groups/{index}")
def update_labor_rate_group(index: int, body: LaborRateGroupIn, store: ConfigStore = Depends(get_store)):
    try:
        group = LaborRateGroupBook(store).replace(index, to_group(body))
    except IndexError:
        raise HTTPException(status_code=404, detail="Labor rate group not found")
    return {"index": index, **group.to_store()}


@app.delete("/labor-rate-groups/{index}")
def delete_labor_rate_group(index: int, store: ConfigStore = Depends(get_store)):
    try:
        LaborRateGroupBook(store).remove(index)
    except IndexError:
        raise HTTPException(status_code=404, detail="Labor rate group not found")
    return {"success": True}


# ─── Pending job hand-off ───

@app.get("/pending-job")
def get_pending_job(store: ConfigStore = Depends(get_store)):
    job_data, timestamp = PendingJobCache(store).get()
    return {"jobData": job_data, "timestamp": timestamp}


@app.post("/pending-job")
def store_pending_job(body: PendingJobIn, store: ConfigStore = Depends(get_store)):
    timestamp = PendingJobCache(store).store_job(body.jobData)
    return {"success": True, "timestamp": timestamp}


@app.delete("/pending-job")
def clear_pending_job(store: ConfigStore = Depends(get_store)):
    PendingJobCache(store).clear()
    return {"success": True}


# ─── Tekmetric ───

@app.get("/tekmetric/status")
def tekmetric_status(client: TekmetricClient = Depends(get_tekmetric)):
    shops = client.available_shops()
    return {
        "configured": client.is_configured(),
        "shops": [{"code": code, "name": SHOP_NAMES[code]} for code in shops],
    }


@app.post("/tekmetric/test")
def tekmetric_test(body: ShopRequest, client: TekmetricClient = Depends(get_tekmetric)):
    if not client.is_configured(body.shopLocation):
        raise HTTPException(status_code=400, detail=f"Tekmetric is not configured for {body.shopLocation}")
    return {"success": client.test_connection(body.shopLocation)}


@app.post("/tekmetric/refresh-pricing")
def tekmetric_refresh_pricing(body: PricingRequest, client: TekmetricClient = Depends(get_tekmetric)):
    if not client.is_configured(body.shopLocation):
        raise HTTPException(status_code=400, detail=f"Tekmetric is not configured for {body.shopLocation}")
    return {"pricing": client.fetch_current_pricing(body.partNumbers, body.shopLocation)}


@app.post("/tekmetric/create-estimate")
def tekmetric_create_estimate(body: EstimateRequest, client: TekmetricClient = Depends(get_tekmetric)):
    try:
        return client.create_estimate(body.job, body.shopLocation, body.customerId, body.vehicleId)
    except NotConfigured as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TekmetricError as e:
        logger.error(f"Create estimate failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
