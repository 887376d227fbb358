# Overview: Flask API routes for master data (lookups, customers, products, warehouses, employees).

from flask import Blueprint, jsonify, request

from ..models import Customer, Employee, Product, Warehouse
from ..services import reference_service
from ..validation import (
    ModelValidationPolicy,
    enforce_non_negative,
    enforce_percentage,
    validate_payload,
)
from .common import DOMAIN_ERRORS, error_response, internal_error, json_payload

reference_bp = Blueprint("reference", __name__, url_prefix="/api")


LOOKUP_POLICIES = {
    "countries": ModelValidationPolicy(writable_fields={"name"}, required_on_create={"name"}),
    "provinces": ModelValidationPolicy(writable_fields={"name", "country_id"}, required_on_create={"name"}),
    "customer-types": ModelValidationPolicy(writable_fields={"name"}, required_on_create={"name"}),
    "product-categories": ModelValidationPolicy(writable_fields={"name"}, required_on_create={"name"}),
    "units": ModelValidationPolicy(writable_fields={"name"}, required_on_create={"name"}),
    "warehouse-types": ModelValidationPolicy(
        writable_fields={"name", "name_ar", "description"},
        required_on_create={"name"},
    ),
}

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_code", "business_owner_name", "institution_name", "phone", "whatsapp_number",
        "email", "address", "location_link", "customer_type_id", "country_id", "province_id",
        "credit_limit", "opening_balance",
    },
    required_on_create={"business_owner_name"},
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "product_code", "code_prefix", "barcode", "name", "image_url", "category_id", "unit_id",
        "sale_price", "discount_percentage", "reorder_level", "purchase_limit",
        "opening_balance", "opening_warehouse_id",
    },
    required_on_create={"name"},
)

WAREHOUSE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "location", "description", "warehouse_type_id"},
    required_on_create={"name"},
)

EMPLOYEE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "position"},
    required_on_create={"name"},
)


@reference_bp.get("/lookups/<kind>")
def list_lookup_route(kind: str):
    try:
        rows = reference_service.list_lookup(kind, country_id=request.args.get("country_id", type=int))
        return jsonify({"items": [r.to_dict() for r in rows], "count": len(rows)}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("list lookup")


@reference_bp.post("/lookups/<kind>")
def create_lookup_route(kind: str):
    try:
        model = reference_service.lookup_model(kind)
        patch = validate_payload(
            model=model, payload=json_payload(), policy=LOOKUP_POLICIES[kind], partial=False
        )
        row = reference_service.create_lookup(kind, patch)
        return jsonify(row.to_dict()), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error(f"create {kind} entry")


# Customers

@reference_bp.get("/customers")
def list_customers_route():
    try:
        customers = reference_service.list_customers(
            search=request.args.get("q"),
            limit=min(request.args.get("limit", 200, type=int), 1000),
            offset=request.args.get("offset", 0, type=int),
        )
        return jsonify({"items": [c.to_dict() for c in customers], "count": len(customers)}), 200
    except Exception:
        return internal_error("list customers")


@reference_bp.post("/customers")
def create_customer_route():
    try:
        patch = validate_payload(model=Customer, payload=json_payload(), policy=CUSTOMER_POLICY, partial=False)
        enforce_non_negative(patch, "credit_limit")
        customer = reference_service.create_customer(patch=patch)
        return jsonify(customer.to_dict()), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("create customer")


@reference_bp.get("/customers/<int:customer_id>")
def get_customer_route(customer_id: int):
    try:
        return jsonify(reference_service.get_customer(customer_id).to_dict()), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("get customer")


@reference_bp.put("/customers/<int:customer_id>")
def update_customer_route(customer_id: int):
    try:
        patch = validate_payload(model=Customer, payload=json_payload(), policy=CUSTOMER_POLICY, partial=True)
        enforce_non_negative(patch, "credit_limit")
        customer = reference_service.update_customer(customer_id, patch=patch)
        return jsonify(customer.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("update customer")


@reference_bp.delete("/customers/<int:customer_id>")
def delete_customer_route(customer_id: int):
    try:
        reference_service.delete_customer(customer_id)
        return jsonify({"message": f"Customer {customer_id} deleted"}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("delete customer")


# Products

@reference_bp.get("/products")
def list_products_route():
    try:
        products = reference_service.list_products(
            search=request.args.get("q"),
            category_id=request.args.get("category_id", type=int),
            limit=min(request.args.get("limit", 200, type=int), 1000),
            offset=request.args.get("offset", 0, type=int),
        )
        return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200
    except Exception:
        return internal_error("list products")


@reference_bp.post("/products")
def create_product_route():
    try:
        patch = validate_payload(model=Product, payload=json_payload(), policy=PRODUCT_POLICY, partial=False)
        enforce_non_negative(patch, "sale_price", "reorder_level", "purchase_limit", "opening_balance")
        enforce_percentage(patch, "discount_percentage")
        product = reference_service.create_product(patch=patch)
        return jsonify(product.to_dict()), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("create product")


@reference_bp.get("/products/<int:product_id>")
def get_product_route(product_id: int):
    try:
        return jsonify(reference_service.get_product(product_id).to_dict()), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("get product")


@reference_bp.put("/products/<int:product_id>")
def update_product_route(product_id: int):
    try:
        patch = validate_payload(model=Product, payload=json_payload(), policy=PRODUCT_POLICY, partial=True)
        enforce_non_negative(patch, "sale_price", "reorder_level", "purchase_limit")
        enforce_percentage(patch, "discount_percentage")
        product = reference_service.update_product(product_id, patch=patch)
        return jsonify(product.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("update product")


@reference_bp.delete("/products/<int:product_id>")
def delete_product_route(product_id: int):
    try:
        reference_service.delete_product(product_id)
        return jsonify({"message": f"Product {product_id} deleted"}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("delete product")


@reference_bp.get("/products/barcode/<barcode>")
def get_product_by_barcode_route(barcode: str):
    try:
        return jsonify(reference_service.find_product_by_barcode(barcode).to_dict()), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("get product by barcode")


# Warehouses and employees

@reference_bp.get("/warehouses")
def list_warehouses_route():
    try:
        warehouses = reference_service.list_warehouses()
        return jsonify({"items": [w.to_dict() for w in warehouses], "count": len(warehouses)}), 200
    except Exception:
        return internal_error("list warehouses")


@reference_bp.post("/warehouses")
def create_warehouse_route():
    try:
        patch = validate_payload(model=Warehouse, payload=json_payload(), policy=WAREHOUSE_POLICY, partial=False)
        warehouse = reference_service.create_warehouse(patch=patch)
        return jsonify(warehouse.to_dict()), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("create warehouse")


@reference_bp.get("/employees")
def list_employees_route():
    try:
        employees = reference_service.list_employees()
        return jsonify({"items": [e.to_dict() for e in employees], "count": len(employees)}), 200
    except Exception:
        return internal_error("list employees")


@reference_bp.post("/employees")
def create_employee_route():
    try:
        patch = validate_payload(model=Employee, payload=json_payload(), policy=EMPLOYEE_POLICY, partial=False)
        employee = reference_service.create_employee(patch=patch)
        return jsonify(employee.to_dict()), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        return internal_error("create employee")
