"""
PostgreSQL invoice store.

Each write is a single transaction. Invoice creation takes a transaction-scoped
advisory lock before reading existing numbers, so two creates never derive
the same sequential number; the UNIQUE constraint on invoice_number still
backs this up and its violation surfaces as ConflictError.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List
from datetime import datetime
from uuid import UUID, uuid4

import psycopg2
import psycopg2.errors
import psycopg2.extras
import psycopg2.pool

from clients.postgres_client import PostgresClient
from core.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from core.models import (
    Company,
    CompanySnapshot,
    CompanyUpdate,
    InvoiceCreate,
    InvoiceItemCreate,
    InvoiceQuery,
    InvoiceSortField,
    InvoiceUpdate,
    InvoiceWithItems,
    LineItem,
    LineItemCreate,
    SortOrder,
)
from core.numbering import NumberingPolicy
from core.store.base import InvoiceStore
from utils.timezone import ensure_utc, now_utc

logger = logging.getLogger(__name__)

# pg_advisory_xact_lock key guarding number assignment ("INV")
NUMBERING_LOCK_KEY = 0x494E56

_INVOICE_COLUMNS = (
    "i.id, i.invoice_number, i.company_id, i.tax_rate, i.subtotal, i.tax, "
    "i.total, i.status, i.created_at, i.updated_at"
)

# Whitelist: sort values never reach SQL text directly
_SORT_COLUMNS = {
    InvoiceSortField.INVOICE_NUMBER: "i.invoice_number",
    InvoiceSortField.TOTAL: "i.total",
    InvoiceSortField.STATUS: "i.status",
    InvoiceSortField.CREATED_AT: "i.created_at",
}


def _like_pattern(search: str) -> str:
    """Substring ILIKE pattern with LIKE metacharacters escaped."""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _timestamps(row: Dict[str, Any]) -> Dict[str, Any]:
    for key in ("created_at", "updated_at"):
        if row.get(key) is not None:
            row[key] = ensure_utc(row[key])
    return row


class PostgresInvoiceStore(InvoiceStore):
    """
    Store backed by the companies, invoices and invoice_items tables.

    Usage:
        db = PostgresClient(get_database_url())
        db.apply_schema()
        store = PostgresInvoiceStore(db, TimestampNumberingPolicy())
    """

    def __init__(
        self,
        db: PostgresClient,
        numbering: NumberingPolicy,
        clock: Callable[[], datetime] = now_utc,
    ):
        super().__init__(numbering)
        self._db = db
        self._clock = clock

    @contextmanager
    def _transaction(self) -> Iterator[Any]:
        """
        Transaction cursor with driver errors mapped to domain errors.

        Connection failures become PersistenceError; values the column types
        reject become ValidationError.
        """
        try:
            with self._db.transaction() as cur:
                yield cur
        except (psycopg2.OperationalError, psycopg2.InterfaceError, psycopg2.pool.PoolError) as e:
            logger.error(f"Database unavailable: {e}")
            raise PersistenceError(f"Database unavailable: {e}") from e
        except psycopg2.DataError as e:
            logger.warning(f"Value rejected by database: {e}")
            raise ValidationError("Value out of range for storage", {"__root__": str(e).strip()}) from e

    # -------------------------------------------------------------------------
    # Companies
    # -------------------------------------------------------------------------

    @staticmethod
    def _fetch_company(cur, company_id: UUID) -> Company | None:
        cur.execute(
            "SELECT id, name, phone, address, website, tax_rate, created_at "
            "FROM companies WHERE id = %s",
            (company_id,),
        )
        row = cur.fetchone()
        return Company.model_validate(_timestamps(dict(row))) if row else None

    def _insert_company(self, cur, data: CompanySnapshot) -> Company:
        cur.execute(
            """INSERT INTO companies (id, name, phone, address, website, tax_rate, created_at)
               VALUES (%s, %s, %s, %s, %s, %s, %s)
               RETURNING id, name, phone, address, website, tax_rate, created_at""",
            (uuid4(), data.name, data.phone, data.address, data.website, data.tax_rate, self._clock()),
        )
        return Company.model_validate(_timestamps(dict(cur.fetchone())))

    def create_company(self, data: CompanySnapshot) -> Company:
        with self._transaction() as cur:
            return self._insert_company(cur, data)

    def get_company(self, company_id: UUID) -> Company | None:
        with self._transaction() as cur:
            return self._fetch_company(cur, company_id)

    def update_company(self, company_id: UUID, data: CompanyUpdate) -> Company | None:
        changes = data.model_dump(exclude_none=True)
        with self._transaction() as cur:
            if not changes:
                return self._fetch_company(cur, company_id)

            assignments = ", ".join(f"{column} = %({column})s" for column in changes)
            cur.execute(
                f"""UPDATE companies SET {assignments}
                    WHERE id = %(company_id)s
                    RETURNING id, name, phone, address, website, tax_rate, created_at""",
                {**changes, "company_id": company_id},
            )
            row = cur.fetchone()
            return Company.model_validate(_timestamps(dict(row))) if row else None

    # -------------------------------------------------------------------------
    # Invoices
    # -------------------------------------------------------------------------

    @staticmethod
    def _fetch_items(cur, invoice_ids: List[UUID]) -> Dict[UUID, List[LineItem]]:
        grouped: Dict[UUID, List[LineItem]] = {invoice_id: [] for invoice_id in invoice_ids}
        if not invoice_ids:
            return grouped
        cur.execute(
            """SELECT id, invoice_id, name, quantity, unit_price, total
               FROM invoice_items
               WHERE invoice_id = ANY(%s::uuid[])
               ORDER BY invoice_id, position""",
            (invoice_ids,),
        )
        for row in cur.fetchall():
            item = LineItem.model_validate(dict(row))
            grouped[item.invoice_id].append(item)
        return grouped

    @staticmethod
    def _fetch_companies(cur, company_ids: List[UUID]) -> Dict[UUID, Company]:
        if not company_ids:
            return {}
        cur.execute(
            "SELECT id, name, phone, address, website, tax_rate, created_at "
            "FROM companies WHERE id = ANY(%s::uuid[])",
            (company_ids,),
        )
        companies = [Company.model_validate(_timestamps(dict(row))) for row in cur.fetchall()]
        return {company.id: company for company in companies}

    def _assemble(self, cur, rows: List[Dict[str, Any]]) -> List[InvoiceWithItems]:
        """Attach items and company to invoice rows, preserving row order."""
        invoice_ids = [row["id"] for row in rows]
        company_ids = list({row["company_id"] for row in rows if row["company_id"] is not None})
        items = self._fetch_items(cur, invoice_ids)
        companies = self._fetch_companies(cur, company_ids)
        return [
            InvoiceWithItems.model_validate({
                **_timestamps(dict(row)),
                "items": items[row["id"]],
                "company": companies.get(row["company_id"]),
            })
            for row in rows
        ]

    def _fetch_invoice(self, cur, where: str, value: Any, lock: bool = False) -> InvoiceWithItems | None:
        suffix = " FOR UPDATE OF i" if lock else ""
        cur.execute(f"SELECT {_INVOICE_COLUMNS} FROM invoices i WHERE {where} = %s{suffix}", (value,))
        row = cur.fetchone()
        return self._assemble(cur, [row])[0] if row else None

    def _write_totals(self, cur, invoice_id: UUID, tax_rate, extra: Dict[str, Any] | None = None) -> None:
        """Recompute totals from the stored items and write them with any extra columns."""
        items = self._fetch_items(cur, [invoice_id])[invoice_id]
        totals = self.checked_totals(items, tax_rate)
        values = {
            **(extra or {}),
            "tax_rate": tax_rate,
            "subtotal": totals.subtotal,
            "tax": totals.tax,
            "total": totals.total,
            "updated_at": self._clock(),
        }
        assignments = ", ".join(f"{column} = %({column})s" for column in values)
        cur.execute(
            f"UPDATE invoices SET {assignments} WHERE id = %(invoice_id)s",
            {**values, "invoice_id": invoice_id},
        )

    def create_invoice(
        self,
        invoice: InvoiceCreate,
        items: list[LineItemCreate],
        company: CompanySnapshot | None = None,
    ) -> InvoiceWithItems:
        number = invoice.invoice_number
        try:
            with self._transaction() as cur:
                cur.execute("SELECT pg_advisory_xact_lock(%s)", (NUMBERING_LOCK_KEY,))

                linked = None
                if invoice.company_id is not None:
                    linked = self._fetch_company(cur, invoice.company_id)
                    if linked is None:
                        raise NotFoundError("Company", invoice.company_id)
                if company is not None:
                    linked = self._insert_company(cur, company)

                if number is None:
                    cur.execute("SELECT invoice_number FROM invoices")
                    number = self.numbering.generate(row["invoice_number"] for row in cur.fetchall())

                tax_rate = self.effective_tax_rate(invoice, linked)
                totals = self.checked_totals(items, tax_rate)
                invoice_id = uuid4()
                now = self._clock()
                cur.execute(
                    """INSERT INTO invoices
                       (id, invoice_number, company_id, tax_rate, subtotal, tax, total,
                        status, created_at, updated_at)
                       VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)""",
                    (
                        invoice_id, number, linked.id if linked else None, tax_rate,
                        totals.subtotal, totals.tax, totals.total,
                        invoice.status.value, now, now,
                    ),
                )
                if items:
                    psycopg2.extras.execute_values(
                        cur,
                        """INSERT INTO invoice_items
                           (id, invoice_id, position, name, quantity, unit_price, total)
                           VALUES %s""",
                        [
                            (uuid4(), invoice_id, position, item.name, item.quantity, item.unit_price, item.total)
                            for position, item in enumerate(items, start=1)
                        ],
                    )

                created = self._fetch_invoice(cur, "i.id", invoice_id)
        except psycopg2.errors.UniqueViolation as e:
            raise ConflictError(number) from e

        logger.info(f"Invoice {number} created with {len(items)} items")
        return created

    def get_invoice(self, invoice_id: UUID) -> InvoiceWithItems | None:
        with self._transaction() as cur:
            return self._fetch_invoice(cur, "i.id", invoice_id)

    def get_invoice_by_number(self, invoice_number: str) -> InvoiceWithItems | None:
        with self._transaction() as cur:
            return self._fetch_invoice(cur, "i.invoice_number", invoice_number)

    def list_invoices(self, query: InvoiceQuery | None = None) -> list[InvoiceWithItems]:
        query = query or InvoiceQuery()
        conditions = []
        params: Dict[str, Any] = {}

        if query.status is not None:
            conditions.append("i.status = %(status)s")
            params["status"] = query.status.value
        if query.search and query.search.strip():
            conditions.append("(i.invoice_number ILIKE %(pattern)s OR c.name ILIKE %(pattern)s)")
            params["pattern"] = _like_pattern(query.search.strip())

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        direction = "DESC" if query.order == SortOrder.DESC else "ASC"
        sql = f"""SELECT {_INVOICE_COLUMNS}
                  FROM invoices i
                  LEFT JOIN companies c ON c.id = i.company_id
                  {where}
                  ORDER BY {_SORT_COLUMNS[query.sort]} {direction}, i.id ASC"""

        with self._transaction() as cur:
            cur.execute(sql, params)
            return self._assemble(cur, [dict(row) for row in cur.fetchall()])

    def update_invoice(self, invoice_id: UUID, data: InvoiceUpdate) -> InvoiceWithItems | None:
        with self._transaction() as cur:
            current = self._fetch_invoice(cur, "i.id", invoice_id, lock=True)
            if current is None:
                return None

            changes = data.model_dump(exclude_none=True)
            if "status" in changes:
                changes["status"] = changes["status"].value
            if "company_id" in changes:
                company = self._fetch_company(cur, changes["company_id"])
                if company is None:
                    raise NotFoundError("Company", changes["company_id"])
                changes.setdefault("tax_rate", company.tax_rate)

            if "tax_rate" in changes:
                tax_rate = changes.pop("tax_rate")
                self._write_totals(cur, invoice_id, tax_rate, extra=changes)
            elif changes:
                changes["updated_at"] = self._clock()
                assignments = ", ".join(f"{column} = %({column})s" for column in changes)
                cur.execute(
                    f"UPDATE invoices SET {assignments} WHERE id = %(invoice_id)s",
                    {**changes, "invoice_id": invoice_id},
                )

            return self._fetch_invoice(cur, "i.id", invoice_id)

    def delete_invoice(self, invoice_id: UUID) -> bool:
        with self._transaction() as cur:
            # invoice_items rows go with it (ON DELETE CASCADE)
            cur.execute("DELETE FROM invoices WHERE id = %s RETURNING invoice_number", (invoice_id,))
            row = cur.fetchone()
        if row:
            logger.info(f"Invoice {row['invoice_number']} deleted")
        return row is not None

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def add_item(self, data: InvoiceItemCreate) -> LineItem:
        with self._transaction() as cur:
            cur.execute(
                "SELECT tax_rate FROM invoices WHERE id = %s FOR UPDATE",
                (data.invoice_id,),
            )
            invoice = cur.fetchone()
            if invoice is None:
                raise NotFoundError("Invoice", data.invoice_id)

            cur.execute(
                """INSERT INTO invoice_items (id, invoice_id, position, name, quantity, unit_price, total)
                   SELECT %s, %s, COALESCE(MAX(position), 0) + 1, %s, %s, %s, %s
                   FROM invoice_items WHERE invoice_id = %s
                   RETURNING id, invoice_id, name, quantity, unit_price, total""",
                (
                    uuid4(), data.invoice_id, data.name, data.quantity,
                    data.unit_price, data.total, data.invoice_id,
                ),
            )
            item = LineItem.model_validate(dict(cur.fetchone()))
            self._write_totals(cur, data.invoice_id, invoice["tax_rate"])
        return item

    def delete_item(self, item_id: UUID) -> bool:
        with self._transaction() as cur:
            cur.execute("DELETE FROM invoice_items WHERE id = %s RETURNING invoice_id", (item_id,))
            row = cur.fetchone()
            if row is None:
                return False

            cur.execute(
                "SELECT tax_rate FROM invoices WHERE id = %s FOR UPDATE",
                (row["invoice_id"],),
            )
            invoice = cur.fetchone()
            if invoice is not None:
                self._write_totals(cur, row["invoice_id"], invoice["tax_rate"])
        return True

    def existing_numbers(self) -> list[str]:
        with self._transaction() as cur:
            cur.execute("SELECT invoice_number FROM invoices")
            return [row["invoice_number"] for row in cur.fetchall()]
