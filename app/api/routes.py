from typing import Optional
from fastapi import APIRouter, Depends
from app.infrastructure.geo import LocalityResolver
from app.infrastructure.wiring import get_locality_resolver, get_tracking_service
from app.application.service import TrackingService
from app.application.schemas import (
    CourierRead,
    Envelope,
    HistoryRead,
    LocalityRead,
    ShipmentRead,
    TrackRequest,
    ValidateRequest,
    ValidationRead,
)
from app.domain.models import TrackingRequest

router = APIRouter(prefix="/api", tags=["tracking"])

@router.post("/track", response_model=Envelope[ShipmentRead])
async def track(payload: TrackRequest, service: TrackingService = Depends(get_tracking_service)):
    record = await service.track(TrackingRequest(payload.tracking_number, payload.courier))
    return Envelope[ShipmentRead](data=ShipmentRead.from_record(record))

@router.get("/couriers", response_model=Envelope[list[CourierRead]])
def list_couriers(service: TrackingService = Depends(get_tracking_service)):
    return Envelope[list[CourierRead]](data=[CourierRead(code=code, name=name) for code, name in service.couriers()])

@router.post("/validate", response_model=Envelope[ValidationRead])
def validate(payload: ValidateRequest, service: TrackingService = Depends(get_tracking_service)):
    is_valid, courier = service.validate(payload.tracking_number)
    return Envelope[ValidationRead](data=ValidationRead(is_valid=is_valid, courier=courier))

@router.get("/history", response_model=Envelope[list[HistoryRead]])
async def history(service: TrackingService = Depends(get_tracking_service)):
    records = await service.history()
    return Envelope[list[HistoryRead]](data=[HistoryRead.from_record(r) for r in records])

@router.get("/locality", response_model=Envelope[LocalityRead])
async def locality(
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    resolver: LocalityResolver = Depends(get_locality_resolver),
):
    resolved = await resolver.resolve(lat, lon)
    return Envelope[LocalityRead](data=LocalityRead(city=resolved.city_name))
