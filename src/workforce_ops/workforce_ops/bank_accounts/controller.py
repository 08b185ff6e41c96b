from __future__ import annotations

from flask import Flask

from ..common.http import error_response, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/bank-accounts", methods=["GET"], endpoint="api_bank_accounts")
    def api_bank_accounts():
        try:
            return ok(container.bank_account_service.list_company_accounts())
        except Exception as e:
            return error_response(e)
