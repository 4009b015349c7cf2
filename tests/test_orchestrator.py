from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from quickpaper import orchestrator
from quickpaper.client import exceptions
from quickpaper.client.models import Profile, SessionUser
from quickpaper.dispatch import DispatchResult, ErrorKind
from quickpaper.utils.exceptions import RenderError, ValidationError
from quickpaper.utils.models import Channel, RenderedDocument


def backend(profile=None):
    c = MagicMock()
    c.session_user.return_value = SessionUser(id='user-1')
    c.profile.return_value = profile
    c.insert_receipt.side_effect = lambda row: {'id': 'r1', **row}
    return c


class TestValidateRequest:
    """Test cases for request validation."""

    def test_valid(self, request_model):
        """Test a complete request passes."""
        orchestrator.validate_request(request_model)

    def test_no_items(self, request_model):
        """Test a request without items is rejected."""
        request = request_model.model_copy(
            update={'items': [], 'subtotal': Decimal(0), 'tax': Decimal(0), 'total': Decimal(0)}
        )
        with pytest.raises(ValidationError) as e:
            orchestrator.validate_request(request)
        assert e.value.problems == ['at least one item is required']

    def test_totals_mismatch(self, request_model):
        """Test totals inconsistent with the items are rejected."""
        request = request_model.model_copy(update={'subtotal': Decimal('8.00'), 'total': Decimal('9.00')})
        with pytest.raises(ValidationError) as e:
            orchestrator.validate_request(request)
        assert e.value.problems == [
            'subtotal 8.00 does not match items total 7.00',
            'total 9.00 is not subtotal + tax',
        ]

    def test_rounding_tolerance(self, request_model):
        """Test totals within a cent are accepted."""
        request = request_model.model_copy(update={'total': Decimal('7.71')})
        orchestrator.validate_request(request)

    def test_channel_recipient(self, request_model):
        """Test the recipient for the chosen channel is required."""
        with pytest.raises(ValidationError, match='customer_email is required'):
            orchestrator.validate_request(request_model.model_copy(update={'customer_email': None}))
        whatsapp = request_model.model_copy(update={'sent_via': Channel.WHATSAPP, 'customer_whatsapp': ''})
        with pytest.raises(ValidationError, match='customer_whatsapp is required'):
            orchestrator.validate_request(whatsapp)

    def test_missing_channel(self, request_model):
        """Test a request without a channel is rejected."""
        with pytest.raises(ValidationError, match='sent_via must be one of: email, whatsapp'):
            orchestrator.validate_request(request_model.model_copy(update={'sent_via': None}))

    def test_bad_pdf_content(self, request_model):
        """Test undecodable pdfContent is rejected."""
        request = request_model.model_copy(update={'pdf_content': 'data:application/pdf;base64,%%%'})
        with pytest.raises(ValidationError, match='pdfContent'):
            orchestrator.validate_request(request)


class TestApplyProfile:
    """Test cases for issuer profile defaults."""

    def test_default_company_name(self, request_model):
        """Test the default company name without a profile."""
        request = orchestrator.apply_profile(request_model.model_copy(update={'company_name': ''}), None)
        assert request.company_name == 'Our Company'

    def test_from_profile(self, request_model):
        """Test logo and signature are taken from the profile."""
        profile = Profile(company_name='Acme', company_logo='data:image/png;base64,AAAA', signature='sig')
        request = orchestrator.apply_profile(request_model.model_copy(update={'company_name': ''}), profile)
        assert request.company_name == 'Acme'
        assert request.company_logo == 'data:image/png;base64,AAAA'
        assert request.signature == 'sig'

    def test_request_wins(self, request_model):
        """Test request values take precedence over the profile."""
        profile = Profile(company_name='Acme')
        assert orchestrator.apply_profile(request_model, profile).company_name == 'Himalayan Java'


class TestDeliver:
    """Test cases for the delivery workflow."""

    @patch('quickpaper.orchestrator.send_email')
    def test_email(self, mock_send_email, request_model):
        """Test the complete email workflow."""
        mock_send_email.return_value = DispatchResult.ok(status=202)
        c = backend()
        mailer = MagicMock()

        outcome = orchestrator.deliver(request_model, c, mailer=mailer)

        assert outcome.delivered
        assert outcome.warning is None
        assert outcome.channel == Channel.EMAIL
        assert outcome.receipt['id'] == 'r1'
        row = c.insert_receipt.call_args[0][0]
        assert row['profile_id'] == 'user-1'
        assert row['sent_via'] == 'email'
        model, document, used_mailer = mock_send_email.call_args[0]
        assert model.receipt_number == 'REC-123456'
        assert document.content.startswith(b'%PDF')
        assert used_mailer is mailer

    @patch('quickpaper.orchestrator.send_email')
    def test_email_failure_keeps_receipt(self, mock_send_email, request_model):
        """Test a failed email keeps the stored receipt and reports the failure."""
        mock_send_email.return_value = DispatchResult.err(ErrorKind.PROVIDER, 'rejected', status=401)
        c = backend()

        outcome = orchestrator.deliver(request_model, c, mailer=MagicMock())

        assert not outcome.delivered
        assert outcome.warning == 'Receipt created but email delivery failed.'
        c.insert_receipt.assert_called_once()

    @patch('quickpaper.orchestrator.send_message')
    def test_whatsapp(self, mock_send_message, request_model):
        """Test WhatsApp requests are routed to the messaging dispatcher."""
        mock_send_message.return_value = DispatchResult.err(ErrorKind.PROVIDER, 'rejected')
        request = request_model.model_copy(update={'sent_via': Channel.WHATSAPP})
        c = backend()
        messenger = MagicMock()
        store = MagicMock()

        outcome = orchestrator.deliver(request, c, messenger=messenger, store=store)

        assert outcome.warning == 'Receipt created but WhatsApp delivery failed.'
        assert c.insert_receipt.call_args[0][0]['sent_via'] == 'whatsapp'
        _, _, used_messenger, used_store = mock_send_message.call_args[0]
        assert used_messenger is messenger
        assert used_store is store

    @patch('quickpaper.orchestrator.pdf.render')
    @patch('quickpaper.orchestrator.send_email')
    def test_supplied_document_is_not_rendered(self, mock_send_email, mock_render, request_model):
        """Test a supplied PDF is sent as-is."""
        mock_send_email.return_value = DispatchResult.ok()
        request = request_model.model_copy(update={'pdf_content': 'data:application/pdf;base64,JVBERi0xLjc='})

        orchestrator.deliver(request, backend(), mailer=MagicMock())

        mock_render.assert_not_called()
        assert mock_send_email.call_args[0][1] == RenderedDocument(b'%PDF-1.7')

    @patch('quickpaper.orchestrator.send_email')
    def test_render_warnings(self, mock_send_email, request_model):
        """Test renderer warnings are reported on the outcome."""
        mock_send_email.return_value = DispatchResult.ok()
        request = request_model.model_copy(update={'company_logo': 'data:image/png;base64,AAAA'})

        outcome = orchestrator.deliver(request, backend(), mailer=MagicMock())

        assert outcome.delivered
        assert len(outcome.warnings) == 1
        assert outcome.warnings[0].startswith('logo:')

    @patch('quickpaper.orchestrator.pdf.render')
    @patch('quickpaper.orchestrator.send_email')
    def test_render_error(self, mock_send_email, mock_render, request_model):
        """Test render errors propagate and nothing is sent."""
        mock_render.side_effect = RenderError('Could not generate receipt REC-123456')

        with pytest.raises(RenderError):
            orchestrator.deliver(request_model, backend(), mailer=MagicMock())
        mock_send_email.assert_not_called()

    def test_unauthenticated(self, request_model):
        """Test nothing happens without a valid session."""
        c = backend()
        c.session_user.side_effect = exceptions.AuthError('Authentication failed')

        with pytest.raises(exceptions.AuthError):
            orchestrator.deliver(request_model, c, mailer=MagicMock())
        c.insert_receipt.assert_not_called()

    def test_invalid_request_not_persisted(self, request_model):
        """Test invalid requests are not stored."""
        c = backend()
        request = request_model.model_copy(update={'customer_email': None})

        with pytest.raises(ValidationError):
            orchestrator.deliver(request, c, mailer=MagicMock())
        c.insert_receipt.assert_not_called()

    def test_missing_provider_not_persisted(self, request_model):
        """Test requests without a configured provider are not stored."""
        c = backend()

        with pytest.raises(ValueError, match='No email provider configured'):
            orchestrator.deliver(request_model, c)
        c.insert_receipt.assert_not_called()

    @patch('quickpaper.orchestrator.send_email')
    def test_company_name_from_profile(self, mock_send_email, request_model):
        """Test the profile company name is used when the request has none."""
        mock_send_email.return_value = DispatchResult.ok()
        request = request_model.model_copy(update={'company_name': ''})

        orchestrator.deliver(request, backend(Profile(company_name='Acme')), mailer=MagicMock())

        assert mock_send_email.call_args[0][0].company_name == 'Acme'
