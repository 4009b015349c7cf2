import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from .client import Client
from .client.mail import SendGridClient
from .client.messaging import TwilioClient
from .client.models import Profile
from .dispatch import DispatchResult
from .dispatch.email import send_email
from .dispatch.messaging import send_message
from .dispatch.storage import ArtifactStore
from .utils import money, pdf
from .utils.exceptions import ValidationError
from .utils.models import Channel, DeliveryRequest, RenderedDocument

logger = logging.getLogger(__name__)

DEFAULT_COMPANY_NAME = 'Our Company'
TOLERANCE = Decimal('0.01')

CHANNEL_LABELS = {Channel.EMAIL: 'email', Channel.WHATSAPP: 'WhatsApp'}


@dataclass
class DeliveryOutcome:
    receipt: dict
    channel: Channel
    result: DispatchResult
    warnings: list[str] = field(default_factory=list)

    @property
    def delivered(self) -> bool:
        return self.result.success

    @property
    def warning(self) -> Optional[str]:
        if self.delivered:
            return None
        return f'Receipt created but {CHANNEL_LABELS[self.channel]} delivery failed.'


def apply_profile(request: DeliveryRequest, profile: Optional[Profile]) -> DeliveryRequest:
    """Fill issuer details the request leaves empty from the issuer profile."""
    update = {}
    if not request.company_name:
        update['company_name'] = (profile and profile.company_name) or DEFAULT_COMPANY_NAME
    if profile is not None:
        if not request.company_logo and profile.company_logo:
            update['company_logo'] = profile.company_logo
        if not request.signature and profile.signature:
            update['signature'] = profile.signature
    return request.model_copy(update=update) if update else request


def validate_request(request: DeliveryRequest):
    """Check what the renderer and dispatchers take for granted.

    Recipient format is not checked, only presence.

    Raises:
        ValidationError: listing every problem found
    """
    problems = []
    if not request.customer_name:
        problems.append('customer_name is required')
    if not request.items:
        problems.append('at least one item is required')

    items_total = sum((item.line_total for item in request.items), Decimal(0))
    if abs(money(items_total) - money(request.subtotal)) > TOLERANCE:
        problems.append(f'subtotal {money(request.subtotal)} does not match items total {money(items_total)}')
    if abs(money(request.subtotal) + money(request.tax) - money(request.total)) > TOLERANCE:
        problems.append(f'total {money(request.total)} is not subtotal + tax')

    if request.sent_via is None:
        problems.append('sent_via must be one of: ' + ', '.join(Channel))
    elif request.sent_via == Channel.EMAIL and not request.customer_email:
        problems.append('customer_email is required to send by email')
    elif request.sent_via == Channel.WHATSAPP and not request.customer_whatsapp:
        problems.append('customer_whatsapp is required to send by WhatsApp')

    if request.pdf_content:
        try:
            request.document()
        except ValueError as e:
            problems.append(f'pdfContent: {e}')

    if problems:
        raise ValidationError(problems)


def deliver(
    request: DeliveryRequest,
    client: Client,
    mailer: Optional[SendGridClient] = None,
    messenger: Optional[TwilioClient] = None,
    store: Optional[ArtifactStore] = None,
) -> DeliveryOutcome:
    """Persist the receipt, render it and send it through request.sent_via.

    A failed send leaves the stored receipt in place; the outcome reports it
    as not delivered.

    Raises:
        AuthError: no valid session
        ValidationError: request rejected, nothing persisted
        ClientError: receipt row could not be stored
        RenderError: document could not be generated
    """
    user = client.session_user()
    logger.info('Processing %s request for receipt %s (user %s)', request.sent_via, request.receipt_number, user.id)

    request = apply_profile(request, client.profile(user.id))
    validate_request(request)
    if request.sent_via == Channel.EMAIL and mailer is None:
        raise ValueError('No email provider configured')
    if request.sent_via == Channel.WHATSAPP and messenger is None:
        raise ValueError('No messaging provider configured')

    row = client.insert_receipt(request.to_row(user.id))
    logger.debug('Receipt %s stored', request.receipt_number)

    warnings = []
    document: Optional[RenderedDocument] = request.document()
    if document is None:
        document = pdf.render(request)
        warnings.extend(document.warnings)

    if request.sent_via == Channel.EMAIL:
        result = send_email(request, document, mailer)
    else:
        result = send_message(request, document, messenger, store or ArtifactStore(client))

    if not result.success:
        logger.error('Failed to send receipt %s: %s', request.receipt_number, result.error)
    return DeliveryOutcome(row, request.sent_via, result, warnings)
