"""Company endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request

from api.base import success_response
from auth.security_middleware import get_session
from auth.types import Session
from core.models import CompanyCreate, CompanyUpdate
from core.services.invoice_service import InvoiceService


def create_companies_router(invoice_svc: InvoiceService) -> APIRouter:
    router = APIRouter(tags=["companies"])

    @router.post("/companies", status_code=201)
    async def create_company(
        request: Request,
        body: CompanyCreate,
        session: Session = Depends(get_session),
    ):
        company = invoice_svc.create_company(body)
        return success_response(company.to_wire(), request).model_dump(mode="json")

    @router.get("/companies/{company_id}")
    async def get_company(
        request: Request,
        company_id: UUID,
        session: Session = Depends(get_session),
    ):
        company = invoice_svc.get_company(company_id)
        return success_response(company.to_wire(), request).model_dump(mode="json")

    @router.put("/companies/{company_id}")
    async def update_company(
        request: Request,
        company_id: UUID,
        body: CompanyUpdate,
        session: Session = Depends(get_session),
    ):
        company = invoice_svc.update_company(company_id, body)
        return success_response(company.to_wire(), request).model_dump(mode="json")

    return router
