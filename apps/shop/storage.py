"""
Blob store for payment proofs. Files go through Django's default storage,
which is S3 (django-storages) in deployed environments and the local media
directory otherwise.
"""
import logging
import os
import uuid

from django.conf import settings
from django.core.files.storage import default_storage

from apps.events.exceptions import DependencyFailure, ValidationError

logger = logging.getLogger(__name__)

PAYMENT_PROOF_DIR = 'payment-proofs'


def store_payment_proof(upload, max_size_bytes=None, allowed_types=None):
    """
    Validate and store an uploaded payment proof.

    Returns:
        str: URL of the stored file

    Raises:
        ValidationError: file too large or of a disallowed type
        DependencyFailure: the storage backend failed
    """
    max_size_bytes = max_size_bytes or settings.PAYMENT_PROOF_MAX_BYTES
    allowed_types = [t.lower() for t in (allowed_types or settings.PAYMENT_PROOF_ALLOWED_TYPES)]

    extension = os.path.splitext(upload.name or '')[1].lstrip('.').lower()
    if extension not in allowed_types:
        raise ValidationError(f'Payment proof must be one of: {", ".join(allowed_types)}.')
    if upload.size > max_size_bytes:
        raise ValidationError(f'Payment proof must not exceed {max_size_bytes // (1024 * 1024)}MB.')

    path = f'{PAYMENT_PROOF_DIR}/{uuid.uuid4().hex}.{extension}'
    try:
        saved_path = default_storage.save(path, upload)
        url = default_storage.url(saved_path)
    except Exception as exc:
        logger.error("Storing payment proof %s failed: %s", upload.name, exc)
        raise DependencyFailure(cause=exc) from exc
    return url


def delete_payment_proof(url):
    """
    Best-effort removal of a stored proof (used when an order is abandoned).
    """
    if not url:
        return
    media_url = settings.MEDIA_URL or ''
    name = url.split('?', 1)[0]
    marker = f'{PAYMENT_PROOF_DIR}/'
    if marker in name:
        name = marker + name.split(marker, 1)[1]
    elif media_url and name.startswith(media_url):
        name = name[len(media_url):]
    try:
        default_storage.delete(name)
    except Exception as exc:
        logger.warning("Could not delete payment proof %s: %s", url, exc)
