import logging

from ..client import Client, exceptions
from ..utils import PDF_MIMETYPE

logger = logging.getLogger(__name__)

BUCKET = 'receipts'
PREFIX = 'pdfs'


class ArtifactStore:
    """Turns document bytes into a publicly fetchable URL.

    Objects land at <prefix>/<name> in the bucket and are overwritten on
    re-upload. The returned URL is public: anyone holding it can download.
    """

    def __init__(self, client: Client, bucket=BUCKET, prefix=PREFIX):
        self.client = client
        self.bucket = client.storage(bucket)
        self.prefix = prefix

    def store(self, content: bytes, name: str, content_type=PDF_MIMETYPE) -> str:
        """Upload content under name and return its public URL.

        Raises:
            AuthError: no valid session
            UploadError: the object store rejected the write
        """
        if not self.client.token:
            raise exceptions.AuthError('Authentication required for file upload')
        self.client.session_user()

        path = f'{self.prefix}/{name}'
        try:
            self.bucket.upload(path, content, content_type)
        except exceptions.ClientError as e:
            logger.error('Upload of %s failed: %s', path, e)
            raise exceptions.UploadError(f'Upload failed: {e}') from e

        url = self.bucket.public_url(path)
        logger.debug('Uploaded %s (%d bytes) to %s', path, len(content), url)
        return url
