"""Invoice, line item and numbering endpoints."""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from api.base import success_response
from auth.security_middleware import get_session
from auth.types import Session
from core.models import (
    InvoiceCreateRequest,
    InvoiceItemCreate,
    InvoiceQuery,
    InvoiceSortField,
    InvoiceStatus,
    InvoiceUpdate,
    SortOrder,
)
from core.rendering import LayoutProfile, export_filename, render_text
from core.services.invoice_service import InvoiceService
from utils.timezone import now_utc, to_local


def create_invoices_router(invoice_svc: InvoiceService) -> APIRouter:
    router = APIRouter(tags=["invoices"])

    def rendered_response(rendered, layout: LayoutProfile, format: str, request: Request):
        if format == "text":
            return PlainTextResponse(render_text(rendered))
        when = to_local(now_utc(), invoice_svc.config.display_timezone)
        return success_response(
            {"rendered": rendered.to_wire(), "filename": export_filename(layout, when)},
            request,
        ).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Invoices
    # -------------------------------------------------------------------------

    @router.post("/invoices", status_code=201)
    async def create_invoice(
        request: Request,
        body: InvoiceCreateRequest,
        session: Session = Depends(get_session),
    ):
        invoice = invoice_svc.create(body)
        return success_response(invoice.to_wire(), request).model_dump(mode="json")

    @router.get("/invoices")
    async def list_invoices(
        request: Request,
        search: str | None = Query(None, max_length=200),
        status: InvoiceStatus | None = Query(None),
        sort: InvoiceSortField = Query(InvoiceSortField.CREATED_AT),
        order: SortOrder = Query(SortOrder.DESC),
        session: Session = Depends(get_session),
    ):
        query = InvoiceQuery(search=search, status=status, sort=sort, order=order)
        invoices = invoice_svc.list(query)
        return success_response([inv.to_wire() for inv in invoices], request).model_dump(mode="json")

    # Registered before /invoices/{invoice_id} so "number" is not parsed as an id
    @router.get("/invoices/number/{invoice_number}")
    async def get_invoice_by_number(
        request: Request,
        invoice_number: str,
        session: Session = Depends(get_session),
    ):
        invoice = invoice_svc.get_by_number(invoice_number)
        return success_response(invoice.to_wire(), request).model_dump(mode="json")

    @router.post("/invoices/preview")
    async def preview_invoice(
        request: Request,
        body: InvoiceCreateRequest,
        layout: LayoutProfile = Query(LayoutProfile.FULL_PAGE),
        print: bool = Query(False),
        format: Literal["json", "text"] = Query("json"),
        session: Session = Depends(get_session),
    ):
        rendered = invoice_svc.preview(body, profile=layout, print_mode=print)
        return rendered_response(rendered, layout, format, request)

    @router.get("/invoices/{invoice_id}")
    async def get_invoice(
        request: Request,
        invoice_id: UUID,
        session: Session = Depends(get_session),
    ):
        invoice = invoice_svc.get(invoice_id)
        return success_response(invoice.to_wire(), request).model_dump(mode="json")

    @router.get("/invoices/{invoice_id}/render")
    async def render_invoice(
        request: Request,
        invoice_id: UUID,
        layout: LayoutProfile = Query(LayoutProfile.FULL_PAGE),
        print: bool = Query(False),
        format: Literal["json", "text"] = Query("json"),
        session: Session = Depends(get_session),
    ):
        rendered = invoice_svc.render(invoice_id, profile=layout, print_mode=print)
        return rendered_response(rendered, layout, format, request)

    @router.put("/invoices/{invoice_id}")
    async def update_invoice(
        request: Request,
        invoice_id: UUID,
        body: InvoiceUpdate,
        session: Session = Depends(get_session),
    ):
        invoice = invoice_svc.update(invoice_id, body)
        return success_response(invoice.to_wire(), request).model_dump(mode="json")

    @router.delete("/invoices/{invoice_id}")
    async def delete_invoice(
        request: Request,
        invoice_id: UUID,
        session: Session = Depends(get_session),
    ):
        invoice_svc.delete(invoice_id)
        return success_response({"deleted": True}, request).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Items and numbering
    # -------------------------------------------------------------------------

    @router.post("/invoice-items", status_code=201)
    async def add_invoice_item(
        request: Request,
        body: InvoiceItemCreate,
        session: Session = Depends(get_session),
    ):
        item = invoice_svc.add_item(body)
        return success_response(item.to_wire(), request).model_dump(mode="json")

    @router.delete("/invoice-items/{item_id}")
    async def delete_invoice_item(
        request: Request,
        item_id: UUID,
        session: Session = Depends(get_session),
    ):
        invoice_svc.delete_item(item_id)
        return success_response({"deleted": True}, request).model_dump(mode="json")

    @router.get("/invoice-number/generate")
    async def generate_invoice_number(
        request: Request,
        session: Session = Depends(get_session),
    ):
        return success_response(
            {"invoiceNumber": invoice_svc.generate_number()},
            request,
        ).model_dump(mode="json")

    return router
