from pathlib import Path

import classyclick
import click

from ..utils import pdf
from ..utils.exceptions import RenderError
from . import _mixins
from .cli import cli


@classyclick.command(group=cli)
class Render(_mixins.RequestMixin):
    """Render a receipt JSON file to a local PDF, without storing or sending it"""

    receipt_file: Path = classyclick.Argument()
    output: Path = classyclick.Option('-o', help='Output file, defaults to receipt-<number>.pdf')

    def __call__(self):
        request = self.load_request()
        try:
            document = pdf.render(request)
        except RenderError as e:
            raise click.ClickException(str(e))

        for warning in document.warnings:
            click.secho(f'Warning: {warning}', fg='yellow')
        output = self.output or Path(request.document_filename)
        output.write_bytes(document.content)
        click.echo(f'Receipt written to {output}')
