import classyclick
import click

from .. import client
from ..utils import token_path
from .cli import cli


@classyclick.command(group=cli)
class Login:
    email: str = classyclick.Option('-u', help='Account email')
    password: str = classyclick.Option('-p', help='Password')
    supabase_url: str = classyclick.Option(help='Backend project URL')
    supabase_key: str = classyclick.Option(help='Backend project anon key')

    def __call__(self):
        if not self.supabase_url or not self.supabase_key:
            raise click.ClickException('supabase_url and supabase_key are required')
        c = client.Client(self.supabase_url, self.supabase_key)
        try:
            r = c.login(self.email, self.password)
        except client.exceptions.AuthError as e:
            raise click.ClickException(str(e))

        path = token_path()
        path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        path.write_text(r['access_token'])
        print('Login succeeded')
