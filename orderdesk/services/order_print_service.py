"""Printable order summary (PDF)."""
from datetime import datetime
from io import BytesIO
from typing import Any, Dict, Mapping, Optional
from xml.sax.saxutils import escape

from flask import current_app, has_app_context
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from orderdesk.models import AggregatedTotals, OrderDraft, OrderType
from orderdesk.utils.formatters import (
    DEFAULT_LOCALE, format_currency, format_number, format_percent,
)

TITLES = {
    OrderType.PURCHASE: 'PURCHASE ORDER',
    OrderType.SALES: 'SALES ORDER',
}

# (header key, label) in print order
HEADER_FIELDS = {
    OrderType.PURCHASE: (
        ('supplierId', 'Supplier'),
        ('warehouseId', 'Warehouse'),
        ('orderDate', 'Order date'),
        ('expectedDeliveryDate', 'Expected delivery'),
    ),
    OrderType.SALES: (
        ('customerId', 'Customer'),
        ('warehouseId', 'Warehouse'),
        ('orderDate', 'Order date'),
        ('salesChannel', 'Sales channel'),
        ('paymentMethod', 'Payment method'),
        ('deliveryAddress', 'Delivery address'),
    ),
}


def _business_info(business_info: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if business_info is not None:
        return dict(business_info)

    if not has_app_context():
        return {}
    config = current_app.config
    return {
        'name': config.get('BUSINESS_NAME'),
        'address': config.get('BUSINESS_ADDRESS'),
        'phone': config.get('BUSINESS_PHONE'),
        'email': config.get('BUSINESS_EMAIL'),
    }


def render_order_pdf(
    draft: OrderDraft,
    totals: AggregatedTotals,
    order_type: OrderType,
    header: Optional[Mapping[str, Any]] = None,
    locale: str = DEFAULT_LOCALE,
    product_names: Optional[Mapping[int, str]] = None,
    business_info: Optional[Mapping[str, Any]] = None,
) -> BytesIO:
    """
    Render an order summary as an A4 PDF.

    Amounts are printed from ``totals`` through the locale formatter; the
    document is for reading only and is never parsed back.

    Args:
        draft: Order lines as entered
        totals: Result of aggregating ``draft``
        order_type: Purchase or sales layout
        header: Order header fields (camelCase keys as sent to the backend)
        locale: Display locale for amounts
        product_names: Optional product id -> name for the line table
        business_info: name/address/phone/email (defaults to app config)

    Returns:
        BytesIO positioned at the start of the PDF
    """
    header = header or {}
    product_names = product_names or {}
    info = _business_info(business_info)

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.75*inch,
        leftMargin=0.75*inch,
        topMargin=0.75*inch,
        bottomMargin=0.75*inch
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'OrderTitle',
        parent=styles['Heading1'],
        fontSize=22,
        textColor=colors.HexColor('#2C3E50'),
        spaceAfter=12,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )

    header_style = ParagraphStyle(
        'OrderHeader',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#7F8C8D'),
        alignment=TA_CENTER,
        spaceAfter=6
    )

    # 1. Title and business header
    elements.append(Paragraph(TITLES[order_type], title_style))

    if info.get('name'):
        elements.append(Paragraph(f"<b>{escape(info['name'])}</b>", header_style))
    if info.get('address'):
        elements.append(Paragraph(escape(info['address']), header_style))

    contact_parts = []
    if info.get('phone'):
        contact_parts.append(f"Tel: {info['phone']}")
    if info.get('email'):
        contact_parts.append(f"Email: {info['email']}")
    if contact_parts:
        elements.append(Paragraph(escape(" | ".join(contact_parts)), header_style))

    elements.append(Spacer(1, 0.3*inch))

    # 2. Order metadata
    meta_rows = [['Printed:', datetime.now().strftime('%d/%m/%Y %H:%M')]]
    for key, label in HEADER_FIELDS[order_type]:
        value = header.get(key)
        if value not in (None, ''):
            meta_rows.append([f'{label}:', str(value)])
    if order_type is OrderType.PURCHASE and draft.order_level_tax_rate is not None:
        meta_rows.append(['Tax rate:', format_percent(draft.order_level_tax_rate)])

    meta_table = Table(meta_rows, colWidths=[2*inch, 4*inch])
    meta_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
        ('ALIGN', (1, 0), (1, -1), 'LEFT'),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
    ]))
    elements.append(meta_table)
    elements.append(Spacer(1, 0.3*inch))

    # 3. Lines
    per_line_terms = order_type is OrderType.SALES
    if per_line_terms:
        table_data = [['Product', 'Qty', 'Unit price', 'Disc.', 'Tax', 'Total']]
        col_widths = [2.3*inch, 0.7*inch, 1.1*inch, 0.6*inch, 0.6*inch, 1.4*inch]
    else:
        table_data = [['Product', 'Qty', 'Unit price', 'Subtotal']]
        col_widths = [3.0*inch, 0.8*inch, 1.4*inch, 1.5*inch]

    for line, line_totals in zip(draft.details, totals.line_totals):
        name = product_names.get(line.product_id) or f'Product #{line.product_id}'
        row = [
            name,
            format_number(line.quantity, locale),
            format_currency(line.unit_price, locale),
        ]
        if per_line_terms:
            row += [
                format_percent(line.discount_percent),
                format_percent(line.tax_rate),
                format_currency(line_totals.total, locale),
            ]
        else:
            row.append(format_currency(line_totals.subtotal, locale))
        table_data.append(row)

    items_table = Table(table_data, colWidths=col_widths)
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#3498DB')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
        ('ALIGN', (1, 1), (-1, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#BDC3C7')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#ECF0F1')]),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    # 4. Totals block
    totals_rows = [['Subtotal:', format_currency(totals.subtotal, locale)]]
    if totals.discount_amount:
        totals_rows.append(['Discount:', '-' + format_currency(totals.discount_amount, locale)])
    totals_rows.append(['Tax:', format_currency(totals.tax_amount, locale)])
    if totals.shipping_fee:
        totals_rows.append(['Shipping:', format_currency(totals.shipping_fee, locale)])
    totals_rows.append(['TOTAL:', format_currency(totals.grand_total, locale)])

    totals_table = Table(totals_rows, colWidths=[5.0*inch, 1.7*inch])
    totals_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -2), 10),
        ('TEXTCOLOR', (0, 0), (-1, -2), colors.HexColor('#34495E')),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, -1), (-1, -1), 14),
        ('TEXTCOLOR', (0, -1), (-1, -1), colors.HexColor('#27AE60')),
        ('BACKGROUND', (0, -1), (-1, -1), colors.HexColor('#E8F8F5')),
        ('BOX', (0, -1), (-1, -1), 2, colors.HexColor('#27AE60')),
    ]))
    elements.append(totals_table)
    elements.append(Spacer(1, 0.4*inch))

    footer_style = ParagraphStyle(
        'Footer', parent=styles['Normal'], fontSize=9,
        textColor=colors.HexColor('#95A5A6'), alignment=TA_CENTER
    )
    footer_text = "<i>Preview totals. The order system recalculates all amounts on submission.</i>"
    if header.get('notes'):
        footer_text += f"<br/><br/><b>Notes:</b> {escape(str(header['notes']))}"
    elements.append(Paragraph(footer_text, footer_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer
