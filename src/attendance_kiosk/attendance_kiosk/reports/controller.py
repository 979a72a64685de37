from __future__ import annotations

import csv
import io

from flask import Flask, jsonify, request

from ..common.responses import error_response
from ..container import Container
from .service import ReportData

_CSV_FIELDS = ["date", "userId", "name", "role", "punchIn", "punchOut", "duration"]


def register(app: Flask, container: Container) -> None:
    debug = bool(app.config.get("DEBUG", False))

    def _build_report() -> ReportData:
        identity_id = (request.args.get("identityId") or "").strip() or None
        return container.report_service.list_by_date_range(
            start=request.args.get("start") or None,
            end=request.args.get("end") or None,
            identity_id=identity_id,
        )

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_report")
    def attendance_report():
        try:
            data = _build_report()
        except Exception as e:
            return error_response(e, debug=debug, context="attendance_report")
        return jsonify(
            {
                "success": True,
                "start": data.start,
                "end": data.end,
                "rows": data.rows,
                "summary": data.summary,
            }
        ), 200

    @app.route("/api/attendance/export.csv", methods=["GET"], endpoint="attendance_export")
    def attendance_export():
        try:
            data = _build_report()
        except Exception as e:
            return error_response(e, debug=debug, context="attendance_export")

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=_CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for row in data.rows:
            writer.writerow({k: ("" if row.get(k) is None else row.get(k)) for k in _CSV_FIELDS})

        filename = f"attendance_{data.start}_{data.end}.csv"
        return app.response_class(
            out.getvalue().encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
