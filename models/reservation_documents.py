"""
Document attachment for new reservations.
Stores submitted files through the upload collaborator and returns the
ordered, immutable list of document references saved with the reservation.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import NamedTuple

from .reservation_errors import UploadError


logger = logging.getLogger(__name__)

DOCUMENTS_FOLDER = 'reservations'


class UploadedFile(NamedTuple):
    """A raw file arriving with a creation request."""

    content: bytes
    filename: str
    content_type: str


class DocumentAttacher:
    """
    Uploads a submission's files concurrently and joins them all.

    Args:
        uploader: Object with store(content, folder, filename) -> url
        max_workers: Upper bound on parallel uploads
        folder: Storage folder for reservation documents
    """

    def __init__(self, uploader, max_workers: int = 4, folder: str = DOCUMENTS_FOLDER):
        self.uploader = uploader
        self.max_workers = max_workers
        self.folder = folder

    def attach(self, files, timeout: float = None) -> tuple:
        """
        Store every file; all succeed or the whole attach fails.

        Args:
            files: Iterable of UploadedFile, in submission order
            timeout: Seconds to wait for all uploads (None waits indefinitely).
                Uploads still running at the deadline are removed when they finish.

        Returns:
            tuple: ({'name', 'url', 'type'}, ...) in submission order

        Raises:
            UploadError: If any upload fails or the timeout expires
        """
        files = list(files or ())
        if not files:
            return ()

        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(files)))
        try:
            futures = [
                executor.submit(self.uploader.store, f.content, self.folder, f.filename)
                for f in files
            ]
            done, not_done = wait(futures, timeout=timeout)

            urls = []
            failure = None
            for uploaded, future in zip(files, futures):
                if future in not_done:
                    # Still running past the deadline; drop the file once it lands
                    future.add_done_callback(self._discard_late)
                    failure = failure or UploadError(
                        f'Upload of {uploaded.filename} timed out', filename=uploaded.filename
                    )
                    continue
                try:
                    urls.append(future.result())
                except Exception as e:
                    logger.error('Failed to store document %s: %s', uploaded.filename, e)
                    failure = failure or UploadError(
                        f'Failed to upload {uploaded.filename}: {e}', filename=uploaded.filename
                    )

            if failure is not None:
                self._discard(urls)
                raise failure
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        logger.info('Stored %d document(s)', len(files))
        return tuple(
            {'name': f.filename, 'url': url, 'type': f.content_type}
            for f, url in zip(files, urls)
        )

    def _discard(self, urls: list) -> None:
        """Best-effort removal of files stored before a sibling upload failed."""
        delete = getattr(self.uploader, 'delete', None)
        if delete is None:
            return
        for url in urls:
            try:
                delete(url)
            except Exception as e:
                logger.warning('Could not remove orphaned document %s: %s', url, e)

    def _discard_late(self, future) -> None:
        """Remove a file whose upload finished after the attach gave up on it."""
        if future.cancelled() or future.exception() is not None:
            return
        url = future.result()
        logger.info('Discarding document %s stored after the upload timeout', url)
        self._discard([url])
