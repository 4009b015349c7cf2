import logging
import shutil
from datetime import datetime
from pathlib import Path

import classyclick
import click

from .. import client, orchestrator, utils
from ..client.mail import DEFAULT_FROM_EMAIL, SendGridClient
from ..client.messaging import TwilioClient
from ..utils.exceptions import RenderError, ValidationError
from ..utils.models import Channel
from . import _mixins
from .cli import cli


@classyclick.command(group=cli)
class Send(_mixins.BackendMixin, _mixins.RequestMixin):
    """Store a receipt and deliver it to the customer by email or WhatsApp"""

    receipt_file: Path = classyclick.Argument()

    channel: str = classyclick.Option(
        '-c',
        type=click.Choice([str(c) for c in Channel]),
        help='Delivery channel, overrides sent_via from the receipt file',
    )
    supabase_url: str = classyclick.Option(help='Backend project URL')
    supabase_key: str = classyclick.Option(help='Backend project anon key')
    sendgrid_api_key: str = classyclick.Option(help='SendGrid API key, required for email delivery')
    from_email: str = classyclick.Option(default=DEFAULT_FROM_EMAIL, help='Sender address for receipt emails')
    twilio_account_sid: str = classyclick.Option(help='Twilio account SID, required for WhatsApp delivery')
    twilio_auth_token: str = classyclick.Option(help='Twilio auth token')
    twilio_number: str = classyclick.Option(help='WhatsApp-enabled sender number, such as +14155238886')
    debug: bool = classyclick.Option(help='Enable debug logging')

    def __call__(self):
        self.setup_logging()
        request = self.load_request()
        if self.channel:
            request = request.model_copy(update={'sent_via': Channel(self.channel)})
        self.logger.debug('Sending receipt %s via %s', request.receipt_number, request.sent_via)

        try:
            outcome = orchestrator.deliver(
                request,
                self.backend,
                mailer=self.mailer(),
                messenger=self.messenger(),
            )
        except ValidationError as e:
            raise click.ClickException('Invalid receipt:\n- ' + '\n- '.join(e.problems))
        except RenderError as e:
            self.logger.exception('Failed to render receipt')
            raise click.ClickException(f'Could not generate receipt: {e}')
        except (client.exceptions.ClientError, ValueError) as e:
            self.logger.exception('Failed to send receipt')
            raise click.ClickException(str(e))

        self.logger.debug('Delivery result for %s: %s', request.receipt_number, outcome.result.to_dict())
        for warning in outcome.warnings:
            click.secho(f'Warning: {warning}', fg='yellow')
        if outcome.delivered:
            click.secho('Receipt created and sent successfully.', fg='green')
        else:
            click.secho(outcome.warning, fg='yellow')
            click.echo(f'Details: {outcome.result.error.message}')

    def mailer(self):
        if not self.sendgrid_api_key:
            return None
        return SendGridClient(self.sendgrid_api_key, from_email=self.from_email)

    def messenger(self):
        if not (self.twilio_account_sid and self.twilio_auth_token and self.twilio_number):
            return None
        return TwilioClient(self.twilio_account_sid, self.twilio_auth_token, self.twilio_number)

    def setup_logging(self):
        logs_dir = utils.logs_path()
        logs_dir.mkdir(parents=True, exist_ok=True)

        # YEARMMDD_HHMM
        prefix = datetime.now().strftime('%Y%m%d_%H%M')

        formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S')

        # package logger, so dispatch and client modules end up in the same file
        self.logger = logging.getLogger('quickpaper')
        self.logger.setLevel(logging.DEBUG)
        file_handler = logging.FileHandler(logs_dir / f'{prefix}.log')
        file_handler.setFormatter(formatter)
        self.logger.addHandler(file_handler)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        if not self.debug:
            console_handler.setLevel(logging.INFO)
        self.logger.addHandler(console_handler)

        self.logger.info(f'Logging to: {logs_dir / f"{prefix}.log"}')

        request_copy = logs_dir / f'{prefix}_{self.receipt_file.name}'
        shutil.copy2(self.receipt_file, request_copy)
        self.logger.debug(f'Receipt file copied to: {request_copy}')
