"""
Transaction submission emails.
Uses Flask-Mail (SMTP) to send the rendered summary to the coordinator.
"""
import logging
from datetime import date
from typing import List, Sequence, Tuple

from flask_mail import Message
from markupsafe import escape

from services.documents.types import Client, NormalizedRecord, RenderedDocument

logger = logging.getLogger(__name__)

DEFAULT_SENDER_NAME = 'PA Real Estate Support Services'
NOT_PROVIDED = 'Not provided'

ROW_STYLE = "padding: 10px; border-bottom: 1px solid #eee;"


def _one_line(value: str) -> str:
    return " ".join(value.split())


def build_subject(record: NormalizedRecord) -> str:
    """Headers can't carry line breaks, so multi-line form input is flattened."""
    address = _one_line(record.get('property.address')) or NOT_PROVIDED
    mls = _one_line(record.get('property.mls_number')) or NOT_PROVIDED
    return f"Transaction Form: {address} (MLS: {mls})"


def property_rows(record: NormalizedRecord) -> List[Tuple[str, str]]:
    return [
        ('Address', record.get('property.address', NOT_PROVIDED)),
        ('MLS Number', record.get('property.mls_number', NOT_PROVIDED)),
        ('Sale Price', record.get('property.sale_price', NOT_PROVIDED)),
        ('Closing Date', record.get('property.closing_date', NOT_PROVIDED)),
        ('Access Type', record.get('property.access_type', NOT_PROVIDED)),
        ('Access Code', record.get('property.lockbox_code', NOT_PROVIDED)),
        ('Winterized', record.get('property.winterized', NOT_PROVIDED)),
        ('Update MLS', record.get('property.update_mls', NOT_PROVIDED)),
    ]


def agent_rows(record: NormalizedRecord) -> List[Tuple[str, str]]:
    return [
        ('Name', record.get('agent.name', NOT_PROVIDED)),
        ('Role', record.get('agent.role', NOT_PROVIDED)),
    ]


def client_rows(client: Client, label: str) -> List[Tuple[str, str]]:
    return [
        (f'{label} Name', client.name or NOT_PROVIDED),
        (f'{label} Phone', client.phone or NOT_PROVIDED),
        (f'{label} Email', client.email or NOT_PROVIDED),
        (f'{label} Address', client.address or NOT_PROVIDED),
    ]


def _html_section(title: str, rows: Sequence[Tuple[str, str]]) -> str:
    cells = "".join(
        f"""
                    <tr>
                        <td style="{ROW_STYLE} font-weight: bold; width: 200px;">{escape(label)}:</td>
                        <td style="{ROW_STYLE}">{escape(value)}</td>
                    </tr>"""
        for label, value in rows
    )
    return f"""
            <div style="margin-bottom: 24px;">
                <h2 style="color: #1e3a8a; font-size: 18px; border-bottom: 2px solid #1e3a8a; padding-bottom: 6px;">{escape(title)}</h2>
                <table style="width: 100%; border-collapse: collapse;">{cells}
                </table>
            </div>"""


def _text_section(title: str, rows: Sequence[Tuple[str, str]]) -> str:
    lines = [f"{title}:"] + [f"- {label}: {value}" for label, value in rows]
    return "\n".join(lines)


def build_sections(record: NormalizedRecord) -> List[Tuple[str, List[Tuple[str, str]]]]:
    sections = [
        ('Property Information', property_rows(record)),
        ('Agent Information', agent_rows(record)),
    ]
    if record.first_buyer:
        sections.append(('Buyer Information', client_rows(record.first_buyer, 'Buyer')))
    if record.first_seller:
        sections.append(('Seller Information', client_rows(record.first_seller, 'Seller')))
    return sections


def build_transaction_email(
    record: NormalizedRecord,
    document: RenderedDocument,
    sender,
    recipients: Sequence[str],
    today: date = None
) -> Message:
    """
    Build the coordinator email with the PDF attached.

    Args:
        sender: Address string or (name, address) tuple
        recipients: One or more recipient addresses
    """
    today = today or date.today()
    current_date = today.strftime("%m/%d/%Y")
    sections = build_sections(record)

    msg = Message(
        subject=build_subject(record),
        sender=sender,
        recipients=list(recipients),
    )

    msg.body = "\n\n".join(
        [f"Transaction Form Submission - {current_date}"]
        + [_text_section(title, rows) for title, rows in sections]
        + ["Please see the attached PDF for complete transaction details."]
    )

    msg.html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <div style="background: #1e3a8a; color: white; padding: 20px; text-align: center;">
            <h1 style="margin: 0;">Transaction Form Submission</h1>
            <p style="margin: 6px 0 0;">{current_date}</p>
        </div>

        <div style="padding: 20px 0;">{"".join(_html_section(title, rows) for title, rows in sections)}

            <p style="font-size: 14px; color: #374151;">
                Please see the attached PDF for complete transaction details.
            </p>
        </div>

        <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 30px 0;">

        <p style="font-size: 12px; color: #9ca3af; text-align: center;">
            This is an automated message from PA Real Estate Support Services.<br>
            If you have any questions, please contact our support team.
        </p>
    </div>
    """

    msg.attach(document.filename, 'application/pdf', document.content)
    return msg


def send_transaction_email(
    mail,
    record: NormalizedRecord,
    document: RenderedDocument,
    sender,
    recipients: Sequence[str],
    today: date = None
) -> Message:
    """
    Send the coordinator email through a Flask-Mail instance.

    Raises whatever the SMTP layer raises; callers decide whether that
    is fatal.
    """
    if mail is None:
        raise RuntimeError("Flask-Mail not configured")
    if not recipients:
        raise ValueError("No email recipients configured")

    msg = build_transaction_email(record, document, sender, recipients, today=today)
    mail.send(msg)
    logger.info(f"Sent transaction email for {document.filename} to {', '.join(recipients)}")
    return msg
