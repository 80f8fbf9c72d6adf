from __future__ import annotations

from dataclasses import dataclass

from flask import Blueprint, current_app, redirect, request, url_for

from app.crm.errors import MalformedInputError, NotFoundError
from app.crm.forms import customer_from_form, parse_customer_id
from app.crm.store import CustomerStore
from app.crm.views import ViewRenderer


@dataclass(frozen=True)
class CrmContext:
    store: CustomerStore
    views: ViewRenderer


def build_blueprint(ctx: CrmContext) -> Blueprint:
    """Customer pages; every handler reads its collaborators from ``ctx``."""
    bp = Blueprint("customers", __name__)

    @bp.get("/")
    def index():
        return redirect(url_for("customers.show_customers"), code=303)

    @bp.get("/health")
    def health():
        return {"ok": True}

    @bp.get("/healthz")
    def healthz():
        return "ok", 200

    @bp.get("/customers")
    def show_customers():
        customers = ctx.store.list_all()
        return ctx.views.render("all", customers=customers)

    @bp.get("/editcustomer")
    def edit_customer():
        customer_id = parse_customer_id(request.args.get("id"))
        customer = ctx.store.find_by_id(customer_id)
        if customer is None:
            raise NotFoundError(f"customer {customer_id} does not exist", customer_id=customer_id)
        return ctx.views.render("update", customer=customer)

    @bp.post("/editcustomeraction")
    def edit_customer_action():
        customer = customer_from_form(request.form, require_id=True)
        ctx.store.update_customer(customer)
        current_app.logger.info("Updated customer id=%s", customer.id)
        return redirect(url_for("customers.show_customers"), code=303)

    @bp.get("/createcustomer")
    def create_customer_form():
        return ctx.views.render("create")

    @bp.post("/createcustomeraction")
    def create_customer_action():
        customer = customer_from_form(request.form, require_id=False)
        ctx.store.create_customer(customer)
        return redirect(url_for("customers.show_customers"), code=303)

    @bp.route("/search", methods=["GET", "POST"])
    def search_customer():
        search_string = request.values.get("param") or ""
        if not search_string.strip():
            raise MalformedInputError("search parameter is required")
        customers = ctx.store.find_by_names(search_string.split())
        return ctx.views.render("search", customers=customers, search_parameter=search_string)

    return bp
