import json
from datetime import date
from functools import cached_property

import click
import pydantic

from ..client import Client
from ..utils import compute_totals, new_receipt_number, token_path
from ..utils.models import DeliveryRequest


class TokenMixin:
    @cached_property
    def token(self):
        path = token_path()
        try:
            token = path.read_text().strip()
        except FileNotFoundError:
            raise click.ClickException('Run `login` first')
        return token


class BackendMixin(TokenMixin):
    @cached_property
    def backend(self):
        if not self.supabase_url or not self.supabase_key:
            raise click.ClickException('supabase_url and supabase_key are required')
        return Client(self.supabase_url, self.supabase_key, token=self.token)


class RequestMixin:
    def load_request(self) -> DeliveryRequest:
        """Read the receipt JSON, filling number, date and totals when missing."""
        try:
            data = json.loads(self.receipt_file.read_text())
        except (OSError, ValueError) as e:
            raise click.ClickException(f'Cannot read {self.receipt_file}: {e}')

        if not data.get('receipt_number'):
            data['receipt_number'] = new_receipt_number()
        if not data.get('date'):
            today = date.today()
            data['date'] = f'{today:%B} {today.day}, {today.year}'
        try:
            request = DeliveryRequest(**data)
        except pydantic.ValidationError as e:
            raise click.ClickException(f'Invalid receipt {self.receipt_file}:\n{e}')

        if data.get('total') is None:
            subtotal, tax, total = compute_totals(request.items, request.tax_rate)
            request = request.model_copy(update={'subtotal': subtotal, 'tax': tax, 'total': total})
        return request
