from typing import List, Optional

from pydantic import BaseModel, Field

from helper_engine.src.models import JobEstimate


class ConcernRequest(BaseModel):
    concern: str = Field(..., description="Customer's description of the problem")


class ConcernQuestions(BaseModel):
    category: Optional[str] = None
    questions: List[str]
    context: str


class LaborRateGroupIn(BaseModel):
    name: str = Field(..., min_length=1)
    makes: List[str] = Field(..., min_length=1)
    laborRate: float = Field(..., gt=0, description="Cents per hour")


class PendingJobIn(BaseModel):
    jobData: dict


class ShopRequest(BaseModel):
    shopLocation: str = Field(..., pattern="^(NB|WM|EV)$")


class PricingRequest(ShopRequest):
    partNumbers: List[str] = Field(..., min_length=1)


class EstimateRequest(ShopRequest):
    job: JobEstimate
    customerId: Optional[int] = None
    vehicleId: Optional[int] = None
