import base64
import logging
from html import escape
from typing import Optional

import requests

from ..client import exceptions
from ..client.mail import SendGridClient
from ..client.models import EmailAttachment, EmailMessage
from ..utils import format_money, templates
from ..utils.models import ReceiptModel, RenderedDocument
from . import DispatchResult, ErrorKind

logger = logging.getLogger(__name__)


def items_text(model: ReceiptModel) -> str:
    """One `<name> x <quantity> - <currency> <line total>` line per item"""
    return '\n'.join(
        templates.ITEM_LINE.format(
            name=item.name,
            quantity=item.quantity,
            amount=format_money(model.currency, item.line_total),
        )
        for item in model.items
    )


def items_html(model: ReceiptModel) -> str:
    return ''.join(
        templates.EMAIL_ITEM_ROW.format(
            name=escape(item.name),
            quantity=item.quantity,
            amount=escape(format_money(model.currency, item.line_total)),
        )
        for item in model.items
    )


def build_email(model: ReceiptModel, document: Optional[RenderedDocument], from_email: str) -> EmailMessage:
    html = templates.EMAIL_HTML.format(
        company_name=escape(model.company_name),
        customer_name=escape(model.customer_name),
        receipt_number=escape(model.receipt_number),
        date=escape(model.date),
        rows=items_html(model),
        subtotal=escape(format_money(model.currency, model.subtotal)),
        tax=escape(format_money(model.currency, model.tax)),
        total=escape(format_money(model.currency, model.total)),
        payment_method=escape(model.payment_method),
    )
    attachments = []
    if document is not None:
        attachments.append(
            EmailAttachment(
                content=base64.b64encode(document.content).decode(),
                filename=model.document_filename,
                mimetype=document.mimetype,
            )
        )
    return EmailMessage(
        to=model.customer_email or '',
        from_email=from_email,
        from_name=model.company_name,
        subject=templates.EMAIL_SUBJECT.format(receipt_number=model.receipt_number, company_name=model.company_name),
        text=items_text(model),
        html=html,
        attachments=attachments,
    )


def send_email(model: ReceiptModel, document: Optional[RenderedDocument], client: SendGridClient) -> DispatchResult:
    """Email the receipt to model.customer_email, attaching the document when given."""
    message = build_email(model, document, client.from_email)
    try:
        sent = client.send(message)
    except exceptions.ProviderError as e:
        logger.error('Error sending receipt %s by email: %s', model.receipt_number, e)
        logger.debug('SendGrid API error: %s', e.body)
        return DispatchResult.err(ErrorKind.PROVIDER, e.message, code=e.code, status=e.status, body=e.body)
    except requests.RequestException as e:
        logger.exception('Error sending receipt %s by email', model.receipt_number)
        return DispatchResult.err(ErrorKind.NETWORK, str(e))

    logger.info('Email for receipt %s sent to %s', model.receipt_number, message.to)
    return DispatchResult.ok(to=message.to, **sent)
