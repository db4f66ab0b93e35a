# Overview: Shared request parsing for the CSV/Excel import and export endpoints.

from flask import request, Response

from ..services import export_service
from ..validation import ValidationError


def rows_from_request(expected_headers, json_key: str = "rows") -> list[dict]:
    """
    Rows for an import: a multipart `file` (.csv or .xlsx), or a JSON body
    already parsed by the client, keyed by "rows" or by json_key
    (e.g. {"sales": [...]}).

    Rows that share no column with expected_headers are rejected as a
    wrong file.
    """
    if "file" in request.files:
        file = request.files["file"]
        try:
            rows = export_service.read_tabular_upload(file.filename or "", file.read())
        except (ValueError, UnicodeDecodeError) as e:
            raise ValidationError(f"Could not read upload: {e}")
    else:
        data = request.get_json(silent=True)
        rows = None
        if isinstance(data, dict):
            rows = data.get("rows", data.get(json_key))
        if not isinstance(rows, list):
            raise ValidationError(f"Provide a file upload or a JSON body with a rows or {json_key} array")
        if not all(isinstance(row, dict) for row in rows):
            raise ValidationError("rows must be an array of objects")

    columns = set().union(*(row.keys() for row in rows)) if rows else set()
    if rows and not columns & set(expected_headers):
        raise ValidationError(f"Unrecognized columns; expected: {', '.join(expected_headers)}")
    return rows


def file_response(body: bytes, mimetype: str, filename: str) -> Response:
    return Response(
        body,
        mimetype=mimetype,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
