from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import error_response, json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/profiles/operations", methods=["POST"], endpoint="api_profiles_operations")
    def api_profiles_operations():
        """Paginate or export the profiles table.

        Body: {operation, page, pageSize, search, sortBy, sortOrder, format}
        """
        try:
            data = json_body()
            operation = data.get("operation")
            search = data.get("search") or ""
            sort_by = data.get("sortBy") or "created_at"
            sort_order = data.get("sortOrder") or "desc"

            if operation == "paginate":
                result = container.profile_operations_service.paginate(
                    page=data.get("page", 1),
                    page_size=data.get("pageSize", 10),
                    search=search,
                    sort_by=sort_by,
                    sort_order=sort_order,
                )
                return jsonify(result)

            if operation == "export":
                export = container.profile_operations_service.export(
                    fmt=data.get("format") or "json",
                    search=search,
                    sort_by=sort_by,
                    sort_order=sort_order,
                )
                return app.response_class(
                    export.content,
                    mimetype=export.mimetype,
                    headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
                )

            return jsonify({"error": "Invalid operation"}), 400
        except (TypeError, ValueError):
            return jsonify({"success": False, "message": "page and pageSize must be integers"}), 400
        except Exception as e:
            return error_response(e)
