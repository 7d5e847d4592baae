# barbershop/exports.py

import csv
import io
from typing import Iterable

from fastapi.responses import StreamingResponse

from .models import Visit


def csv_response(filename: str, header: list[str], rows: Iterable[list]) -> StreamingResponse:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(header)
    for row in rows:
        writer.writerow(row)
    output.seek(0)

    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


VISIT_HEADER = ["Visit ID", "Date", "Client ID", "Barber", "Services", "Total Price", "Reward Redeemed", "Notes"]


def visit_row(visit: Visit) -> list:
    return [
        visit.id,
        visit.visit_date.strftime("%Y-%m-%d %H:%M"),
        visit.client_id,
        visit.barber,
        "; ".join(s["name"] for s in visit.services),
        f"{visit.total_price:.2f}",
        "Yes" if visit.reward_redeemed else "No",
        visit.notes or "",
    ]
