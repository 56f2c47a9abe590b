"""
Spreadsheet export of orders.
"""

from datetime import datetime
from io import BytesIO
from typing import Any, Dict, List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

ORDER_EXPORT_HEADERS = [
    "ID", "Order number", "Date", "Status", "Payment status", "Payment method",
    "Customer", "Email", "City", "Items",
    "Tax", "Shipping", "Bargain discount", "Total",
]


def _format_date(value: Any) -> str:
    if not value:
        return ""
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).strftime("%d.%m.%Y %H:%M")
    except ValueError:
        return str(value)


def build_orders_workbook(orders: List[Dict[str, Any]]) -> bytes:
    """Renders orders (with ``user_name``/``user_email`` joined in) as an xlsx file."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Orders"

    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF")

    for col_num, header in enumerate(ORDER_EXPORT_HEADERS, 1):
        cell = ws.cell(row=1, column=col_num, value=header)
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center")

    for row_num, order in enumerate(orders, 2):
        address = order.get("shipping_address") or {}
        items = ", ".join(
            f"{item['product_name']} x{item['quantity']}" for item in order.get("items") or []
        )
        row_data = [
            order["id"],
            order["order_number"],
            _format_date(order.get("created_at")),
            order["status"],
            order["payment_status"],
            order["payment_method"],
            order.get("user_name") or address.get("name", ""),
            order.get("user_email") or "",
            address.get("city", ""),
            items,
            order.get("tax_amount", 0),
            order.get("shipping_cost", 0),
            order.get("total_bargain_discount", 0),
            order["total"],
        ]
        for col_num, value in enumerate(row_data, 1):
            cell = ws.cell(row=row_num, column=col_num, value=value)
            if isinstance(value, float):
                cell.number_format = "#,##0.00"

    for col in ws.columns:
        max_length = max(len(str(cell.value or "")) for cell in col)
        ws.column_dimensions[col[0].column_letter].width = min(max_length + 2, 50)

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
