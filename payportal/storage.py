# ==============================================================================
# payportal/storage.py
# ------------------------------------------------------------------------------
# Blob storage for archived documents. Files are written below a root folder
# and addressed by a public URL built from the blob path.
# ==============================================================================

import os
import logging
from flask import current_app

logger = logging.getLogger(__name__)


class BlobStorageError(Exception):
    """Raised when a blob cannot be written or addressed."""


class LocalBlobStorage:
    """Stores blobs on the local filesystem, e.g. under the app's instance folder."""

    def __init__(self, root, base_url):
        self.root = os.path.abspath(root)
        self.base_url = base_url.rstrip('/')

    def _target(self, path):
        path = path.replace('\\', '/').lstrip('/')
        target = os.path.abspath(os.path.join(self.root, path))
        if not path or os.path.commonpath([self.root, target]) != self.root:
            raise BlobStorageError(f"Invalid blob path '{path}'")
        return path, target

    def store(self, data, path):
        """
        Writes `data` (bytes) at `path` and returns the URL the blob is served from.
        An existing blob at the same path is replaced.
        """
        path, target = self._target(path)
        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with open(target, 'wb') as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Could not store blob '{path}': {e}", exc_info=True)
            raise BlobStorageError(f"Could not store '{path}': {e}") from e
        logger.info(f"Stored blob '{path}' ({len(data)} bytes)")
        return self.url_for(path)

    def url_for(self, path):
        return f"{self.base_url}/{path.lstrip('/')}"


def get_storage():
    """The blob storage configured for the current app."""
    return LocalBlobStorage(current_app.config['BLOB_STORAGE_ROOT'],
                            current_app.config['BLOB_PUBLIC_URL'])
