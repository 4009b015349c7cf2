from typing import Optional
from urllib.parse import quote

import pydantic
import requests

from . import exceptions, models


def error_message(r: requests.Response) -> str:
    """Best effort human message out of an error response body"""
    try:
        rd = r.json()
    except ValueError:
        return r.reason or 'Unexpected error'
    if not isinstance(rd, dict):
        return str(rd)
    for key in ('message', 'msg', 'error_description', 'error'):
        if rd.get(key):
            return str(rd[key])
    return r.reason or 'Unexpected error'


class Client(requests.Session):
    """HTTP Client for the hosted backend (Supabase auth, tables and storage).

    Inherits from requests.Session to provide connection pooling
    and persistent configuration across requests.
    """

    def __init__(
        self,
        base_url,
        api_key,
        token=None,
        *args,
        **kwargs,
    ):
        """Initialize the Client.

        Args:
            base_url: Project URL, such as https://xyz.supabase.co
            api_key: Project anon (public) key
            token: Session access token, as returned by login
            *args: Additional positional arguments for requests.Session
            **kwargs: Additional keyword arguments for requests.Session
        """
        super().__init__(*args, **kwargs)
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.token = token

    def request(self, method, url, *args, _token=False, headers=None, **kwargs):
        """Make an HTTP request.

        Relative URLs are resolved against base_url and get the project key,
        plus the session bearer token when _token is set.

        Returns:
            decoded JSON body, or None for empty responses
        """
        if self.base_url and not url.startswith(('http://', 'https://')):
            url = f'{self.base_url}/{url.lstrip("/")}'
            if headers is None:
                headers = {}
            headers['apikey'] = self.api_key
            if _token:
                if not self.token:
                    raise exceptions.AuthError('Authentication required')
                headers['Authorization'] = f'Bearer {self.token}'
        r = super().request(method, url, *args, headers=headers, **kwargs)
        if not r.ok:
            message = f'{error_message(r)} ({r.status_code})'
            if r.status_code in (401, 403):
                raise exceptions.AuthError(message)
            raise exceptions.ClientError(message)

        if not r.content:
            return None
        return r.json()

    def login(self, email, password) -> dict:
        """Password sign-in, keeping the access token for later requests."""

        try:
            r = self.post('auth/v1/token', params={'grant_type': 'password'}, json={'email': email, 'password': password})
        except exceptions.ClientError as e:
            raise exceptions.AuthError(str(e))

        self.token = r['access_token']
        return r

    def session_user(self) -> models.SessionUser:
        """User owning the current session token."""

        try:
            r = self.get('auth/v1/user', _token=True)
        except exceptions.ClientError as e:
            raise exceptions.AuthError(f'Authentication failed - {e}')
        try:
            return models.SessionUser.model_validate(r)
        except pydantic.ValidationError:
            raise exceptions.AuthError('Authentication failed - unexpected user response')

    def profile(self, user_id: str) -> Optional[models.Profile]:
        r = self.get(
            'rest/v1/profiles',
            params={'id': f'eq.{user_id}', 'select': 'company_name,company_logo,signature'},
            _token=True,
        )
        if not r:
            return None
        return models.Profile(**r[0])

    def insert_receipt(self, row: dict) -> dict:
        r = self.post('rest/v1/receipts', json=row, headers={'Prefer': 'return=representation'}, _token=True)
        return r[0] if r else row

    def storage(self, bucket: str) -> 'StorageClient':
        return StorageClient(self, bucket)


class StorageClient(requests.Session):
    def __init__(
        self,
        client: Client,
        bucket: str,
        *args,
        **kwargs,
    ):
        """Initialize a client for one storage bucket."""
        super().__init__(*args, **kwargs)
        self._client = client
        self._bucket = bucket

    def request(self, method: str, url: str, *args, **kwargs):
        if not url.startswith(('http://', 'https://')):
            url = f'storage/v1/object/{quote(self._bucket, safe="")}/{url.lstrip("/")}'
        return self._client.request(method, url, *args, _token=True, **kwargs)

    def upload(self, path: str, content: bytes, content_type: str, upsert=True) -> dict:
        """Write an object, replacing any previous content when upsert is set."""

        return self.post(
            quote(path),
            data=content,
            headers={'Content-Type': content_type, 'x-upsert': 'true' if upsert else 'false'},
        )

    def public_url(self, path: str) -> str:
        return f'{self._client.base_url}/storage/v1/object/public/{quote(self._bucket, safe="")}/{quote(path)}'
