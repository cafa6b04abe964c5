"""
Document storage collaborator.
Local-disk implementation of the upload capability used when attaching
documents to reservations: store(content, folder, filename) -> url.
"""

import logging
import os

from flask import current_app

from utils.helpers import allowed_file, stored_filename

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """A file could not be stored."""


class LocalFileStorage:
    """
    Stores files under a root directory and returns URLs below a prefix.

    Usage:
        storage = LocalFileStorage('instance/uploads', '/uploads', {'pdf'})
        url = storage.store(b'...', 'reservations', 'programme.pdf')
    """

    def __init__(self, root: str, url_prefix: str = '/uploads', allowed_extensions: set = None):
        self.root = root
        self.url_prefix = url_prefix.rstrip('/')
        self.allowed_extensions = allowed_extensions

    def store(self, content: bytes, folder: str, filename: str) -> str:
        """
        Write one file and return its public URL.

        Args:
            content: File bytes
            folder: Sub-folder under the storage root (e.g. 'reservations')
            filename: Original filename

        Returns:
            str: URL of the stored file

        Raises:
            StorageError: Empty content or disallowed extension
            OSError: Filesystem failure
        """
        if not content:
            raise StorageError(f'{filename}: file is empty')
        if self.allowed_extensions is not None and not allowed_file(filename, self.allowed_extensions):
            raise StorageError(f'{filename}: file type not allowed')

        name = stored_filename(filename)
        directory = os.path.join(self.root, folder)
        os.makedirs(directory, exist_ok=True)

        path = os.path.join(directory, name)
        with open(path, 'wb') as f:
            f.write(content)

        logger.debug('Stored %s (%d bytes) at %s', filename, len(content), path)
        return f'{self.url_prefix}/{folder}/{name}'

    def delete(self, url: str) -> None:
        """Remove a previously stored file; missing files are ignored."""
        relative = url[len(self.url_prefix):].lstrip('/') if url.startswith(self.url_prefix) else url
        path = os.path.join(self.root, relative)
        if os.path.exists(path):
            os.remove(path)


def get_storage():
    """
    Upload collaborator for the current app.

    An instance registered as app.extensions['document_storage'] wins,
    so tests and deployments can swap the provider.
    """
    storage = current_app.extensions.get('document_storage')
    if storage is None:
        storage = LocalFileStorage(
            current_app.config['UPLOAD_FOLDER'],
            current_app.config.get('UPLOAD_URL_PREFIX', '/uploads'),
            current_app.config.get('ALLOWED_EXTENSIONS')
        )
    return storage
