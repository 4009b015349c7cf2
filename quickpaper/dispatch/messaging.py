import logging
from enum import StrEnum
from typing import Optional

import requests

from ..client import exceptions
from ..client.messaging import TwilioClient
from ..utils import format_money, normalize_handle, templates
from ..utils.models import ReceiptModel, RenderedDocument
from . import DispatchResult, ErrorKind
from .email import items_text
from .storage import ArtifactStore

logger = logging.getLogger(__name__)


class DispatchState(StrEnum):
    START = 'start'
    TEXT_SENT = 'text_sent'
    DOCUMENT_ATTEMPTED = 'document_attempted'
    DONE = 'done'


def summary_text(model: ReceiptModel) -> str:
    return templates.WHATSAPP_SUMMARY.format(
        company_name=model.company_name,
        receipt_number=model.receipt_number,
        date=model.date,
        customer_name=model.customer_name,
        items=items_text(model),
        subtotal=format_money(model.currency, model.subtotal),
        tax=format_money(model.currency, model.tax),
        total=format_money(model.currency, model.total),
        payment_method=model.payment_method,
    )


class MessagingDispatch:
    """Two-message WhatsApp delivery: summary text, then the document as media.

    START -> TEXT_SENT -> DOCUMENT_ATTEMPTED (document given) | DONE (no document)

    Only a failure before TEXT_SENT fails the dispatch; once the summary is
    delivered, upload or media send errors are logged and recorded in the
    result info as `document_error`.
    """

    def __init__(
        self,
        model: ReceiptModel,
        document: Optional[RenderedDocument],
        client: TwilioClient,
        store: ArtifactStore,
    ):
        self.model = model
        self.document = document
        self.client = client
        self.store = store
        self.to = normalize_handle(model.customer_whatsapp or '')
        self.state = DispatchState.START

    def run(self) -> DispatchResult:
        logger.debug('Sending WhatsApp summary for receipt %s to %s', self.model.receipt_number, self.to)
        try:
            sent = self.client.send(self.to, summary_text(self.model))
        except exceptions.ProviderError as e:
            logger.error('Error sending WhatsApp for receipt %s: %s (code %s)', self.model.receipt_number, e, e.code)
            return DispatchResult.err(ErrorKind.PROVIDER, e.message, code=e.code, status=e.status, body=e.body)
        except requests.RequestException as e:
            logger.exception('Error sending WhatsApp for receipt %s', self.model.receipt_number)
            return DispatchResult.err(ErrorKind.NETWORK, str(e))

        self.state = DispatchState.TEXT_SENT
        logger.info('WhatsApp summary for receipt %s sent: %s', self.model.receipt_number, sent.sid)
        info = {'to': self.to, 'sid': sent.sid}

        if self.document is None:
            self.state = DispatchState.DONE
            return DispatchResult.ok(**info)

        self.state = DispatchState.DOCUMENT_ATTEMPTED
        info.update(self.send_document())
        return DispatchResult.ok(**info)

    def send_document(self) -> dict:
        try:
            url = self.store.store(self.document.content, self.model.document_filename)
            sent = self.client.send(self.to, templates.WHATSAPP_DOCUMENT_CAPTION, media_urls=[url])
        except (exceptions.ClientError, requests.RequestException) as e:
            # summary already delivered: the receipt counts as sent without its PDF
            logger.exception('Error handling PDF for receipt %s', self.model.receipt_number)
            return {'document_error': str(e)}

        logger.info('WhatsApp PDF for receipt %s sent: %s', self.model.receipt_number, sent.sid)
        return {'document_url': url, 'document_sid': sent.sid}


def send_message(
    model: ReceiptModel,
    document: Optional[RenderedDocument],
    client: TwilioClient,
    store: ArtifactStore,
) -> DispatchResult:
    return MessagingDispatch(model, document, client, store).run()
