"""Flask REST API exposing the budget tracker store."""

from __future__ import annotations

import os
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import simplejson
from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from flask_cors import CORS

from budget_core.aggregation import sorted_expenses, summarize
from budget_core.exceptions import PersistenceError, ValidationError
from budget_core.models import BudgetRecord
from budget_core.periods import utcnow
from budget_core.services import BudgetStore
from budget_core.storage import JSONFileStorage, StorageAdapter, default_data_dir


class DecimalJSONProvider(DefaultJSONProvider):
    """Encode and decode JSON numbers as exact Decimals."""

    def dumps(self, obj: Any, **kwargs: Any) -> str:
        kwargs.setdefault("default", self.default)
        kwargs.setdefault("ensure_ascii", self.ensure_ascii)
        kwargs.setdefault("sort_keys", self.sort_keys)
        return simplejson.dumps(obj, use_decimal=True, **kwargs)

    def loads(self, s: str | bytes, **kwargs: Any) -> Any:
        return simplejson.loads(s, use_decimal=True, **kwargs)


def create_app(
    data_dir: Optional[Path] = None,
    *,
    storage: Optional[StorageAdapter] = None,
    clock: Callable[[], datetime] = utcnow,
) -> Flask:
    app = Flask(__name__)
    app.json = DecimalJSONProvider(app)

    env_name = os.getenv("BUDGET_TRACKER_ENV", "prod").lower()
    if env_name in {"dev", "development"}:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    else:
        allowed_origins = os.getenv("BUDGET_TRACKER_ALLOWED_ORIGINS")
        if allowed_origins:
            origins = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
            CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=True)
        else:
            CORS(app)

    if storage is None:
        storage = JSONFileStorage(Path(data_dir or default_data_dir()))
    store = BudgetStore(storage, clock=clock)
    loaded = store.load()
    if loaded.recovered:
        app.logger.warning("Stored budget data was malformed; started a fresh budget")

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, "Persistence error")

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    # The load-time rollover is reported once, with the first budget payload.
    notices = {"rolled_over": loaded.rolled_over}

    def _budget_payload(record: BudgetRecord) -> Dict[str, Any]:
        payload = summarize(record).to_dict()
        payload["expenses"] = [entry.to_dict() for entry in sorted_expenses(record)]
        load_notice = notices.pop("rolled_over", False)
        payload["rolled_over"] = store.pop_rollover_notice() or load_notice
        return payload

    @app.get("/budget")
    def get_budget():
        return _success(_budget_payload(store.record))

    @app.post("/income")
    def add_income():
        payload = _json_body()
        record = store.add_income(payload.get("amount"))
        return _success(_budget_payload(record), 201)

    @app.get("/expenses")
    def list_expenses():
        category = request.args.get("category") or None
        expenses = sorted_expenses(store.record, category=category)
        total = sum((entry.amount for entry in expenses), Decimal("0.00"))
        return _success({
            "items": [entry.to_dict() for entry in expenses],
            "total": f"{total:.2f}",
        })

    @app.post("/expenses")
    def create_expense():
        payload = _json_body()
        added = store.add_expense(
            payload.get("category"), payload.get("amount"), payload.get("note", "")
        )
        return _success({"expense": added.entry.to_dict(), "warning": added.warning.value}, 201)

    @app.post("/expenses/check")
    def check_expense():
        payload = _json_body()
        status = store.check_expense(payload.get("category"), payload.get("amount"))
        return _success({"warning": status.value})

    @app.delete("/expenses/<expense_id>")
    def delete_expense(expense_id: str):
        store.delete_expense(expense_id)
        return _success({}, 204)

    @app.put("/limits/<category>")
    def set_limit(category: str):
        payload = _json_body()
        record = store.set_limit(category, payload.get("limit"))
        return _success(_budget_payload(record))

    @app.delete("/limits/<category>")
    def remove_limit(category: str):
        store.remove_limit(category)
        return _success({}, 204)

    @app.post("/reset")
    def reset():
        record = store.reset_all()
        return _success(_budget_payload(record))

    return app
