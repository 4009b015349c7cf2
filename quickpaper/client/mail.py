import requests

from . import exceptions, models

DEFAULT_FROM_EMAIL = 'noreply@2quickpaper.com'


class SendGridClient(requests.Session):
    """HTTP Client for the SendGrid v3 API."""

    def __init__(
        self,
        api_key,
        from_email=DEFAULT_FROM_EMAIL,
        base_url='https://api.sendgrid.com/v3/',
        *args,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.api_key = api_key
        self.from_email = from_email
        self.base_url = base_url.rstrip('/')

    def request(self, method, url, *args, headers=None, **kwargs):
        if self.base_url and not url.startswith(('http://', 'https://')):
            url = f'{self.base_url}/{url.lstrip("/")}'
            if headers is None:
                headers = {}
            headers['Authorization'] = f'Bearer {self.api_key}'
        r = super().request(method, url, *args, headers=headers, **kwargs)
        if not r.ok:
            try:
                body = r.json()
                message = '; '.join(e.get('message', '') for e in body.get('errors', [])) or r.reason
            except ValueError:
                body = r.text
                message = r.reason or 'Unexpected error'
            raise exceptions.ProviderError(f'SendGrid - {message} ({r.status_code})', status=r.status_code, body=body)
        return r

    def send(self, message: models.EmailMessage) -> dict:
        """Send one email. SendGrid answers 202 with an empty body."""

        r = self.post('mail/send', json=message.payload())
        return {'status': r.status_code, 'message_id': r.headers.get('X-Message-Id')}
