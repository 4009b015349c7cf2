from typing import Optional
from urllib.parse import quote

import pydantic
import requests

from . import exceptions, models


class TwilioClient(requests.Session):
    """HTTP Client for the Twilio Messages API, WhatsApp channel."""

    def __init__(
        self,
        account_sid,
        auth_token,
        from_number,
        base_url='https://api.twilio.com/2010-04-01/',
        *args,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.account_sid = account_sid
        self.from_number = from_number
        self.base_url = base_url.rstrip('/')
        self.auth = (account_sid, auth_token)

    def request(self, method, url, *args, **kwargs):
        if self.base_url and not url.startswith(('http://', 'https://')):
            url = f'{self.base_url}/Accounts/{quote(self.account_sid, safe="")}/{url.lstrip("/")}'
        r = super().request(method, url, *args, **kwargs)
        if not r.ok:
            try:
                rd = r.json()
            except ValueError:
                rd = {}
            raise exceptions.ProviderError(
                rd.get('message') or r.reason or 'Unexpected error',
                status=rd.get('status', r.status_code),
                code=rd.get('code'),
                body=rd or r.text,
            )
        return r.json()

    def send(self, to: str, body: str, media_urls: Optional[list[str]] = None) -> models.SentMessage:
        """Send a WhatsApp message to an already normalized +<digits> number."""

        data = {
            'From': f'whatsapp:{self.from_number}',
            'To': f'whatsapp:{to}',
            'Body': body,
        }
        if media_urls:
            data['MediaUrl'] = list(media_urls)
        r = self.post('Messages.json', data=data)
        try:
            return models.SentMessage.model_validate(r)
        except pydantic.ValidationError:
            raise exceptions.ProviderError('Twilio - unexpected response, no message sid', body=r)
