"""
Supabase Storage Service for Transaction PDFs

Handles uploads of rendered transaction summaries to Supabase Storage.
Files are stored in a public bucket so Airtable can fetch them by URL.
"""

import logging
import os
from typing import Optional, Tuple

from supabase import create_client, Client

logger = logging.getLogger(__name__)

# Supabase client singleton and the credentials it was built with
_supabase_client: Client = None
_supabase_credentials: Optional[Tuple[str, str]] = None

# Bucket names
TRANSACTION_DOCUMENTS_BUCKET = 'transaction-documents'
TRANSACTION_PDF_FOLDER = 'transaction-pdfs'


def get_supabase_client(supabase_url: str = None, supabase_key: str = None) -> Client:
    """
    Lazily create the client the PDF upload endpoint writes through.

    Explicit credentials (the app's SUPABASE_URL / SUPABASE_KEY config)
    win over the environment. A change of credentials builds a new client.
    """
    global _supabase_client, _supabase_credentials

    supabase_url = supabase_url or os.getenv('SUPABASE_URL')
    supabase_key = supabase_key or os.getenv('SUPABASE_KEY')

    if not supabase_url or not supabase_key:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_KEY must be set to upload transaction PDFs "
            "(project settings > API in Supabase)."
        )

    if _supabase_client is None or _supabase_credentials != (supabase_url, supabase_key):
        _supabase_client = create_client(supabase_url, supabase_key)
        _supabase_credentials = (supabase_url, supabase_key)

    return _supabase_client


def reset_supabase_client() -> None:
    """Drop the cached client. Mainly for testing."""
    global _supabase_client, _supabase_credentials
    _supabase_client = None
    _supabase_credentials = None


def _bucket_name(bucket) -> str:
    if isinstance(bucket, dict):
        return bucket.get('name') or bucket.get('id')
    return getattr(bucket, 'name', None) or getattr(bucket, 'id', None)


def ensure_bucket(bucket: str = TRANSACTION_DOCUMENTS_BUCKET, client: Client = None) -> str:
    """
    Make sure a public bucket exists and return the name to upload into.

    Missing buckets are created public. If creation is refused, the
    first existing bucket is used instead.

    Raises:
        RuntimeError: if no bucket can be found or created
    """
    client = client or get_supabase_client()

    buckets = client.storage.list_buckets() or []
    names = [_bucket_name(b) for b in buckets]
    if bucket in names:
        return bucket

    logger.info(f"Bucket {bucket} not found, creating it")
    try:
        client.storage.create_bucket(bucket, options={'public': True})
        return bucket
    except Exception as e:
        logger.warning(f"Could not create bucket {bucket}: {e}")

    existing = [n for n in names if n]
    if not existing:
        raise RuntimeError(f"No storage bucket available (could not create {bucket})")

    logger.info(f"Falling back to existing bucket {existing[0]}")
    return existing[0]


def generate_transaction_pdf_path(filename: str) -> str:
    """Storage path for a rendered summary. Re-uploads overwrite."""
    return f"{TRANSACTION_PDF_FOLDER}/{filename}"


def upload_transaction_pdf(
    file_data: bytes,
    filename: str,
    bucket: str = TRANSACTION_DOCUMENTS_BUCKET,
    client: Client = None,
    supabase_url: str = None,
    supabase_key: str = None
) -> dict:
    """
    Upload a transaction PDF and return where it landed.

    Args:
        file_data: The PDF content as bytes
        filename: Document filename, e.g. Transaction_PM-1_2025-05-06.pdf
        bucket: Preferred bucket name
        supabase_url, supabase_key: Credentials when no client is given

    Returns:
        dict with 'bucket', 'path', 'url', 'size' keys on success

    Raises:
        Exception on upload failure
    """
    client = client or get_supabase_client(supabase_url, supabase_key)
    bucket = ensure_bucket(bucket, client=client)
    storage_path = generate_transaction_pdf_path(filename)

    client.storage.from_(bucket).upload(
        path=storage_path,
        file=file_data,
        file_options={'content-type': 'application/pdf', 'upsert': 'true'}
    )

    url = get_public_url(bucket, storage_path, client=client)
    logger.info(f"Uploaded {storage_path} to bucket {bucket} ({len(file_data)} bytes)")

    return {
        'bucket': bucket,
        'path': storage_path,
        'url': url,
        'size': len(file_data)
    }


def get_public_url(bucket: str, storage_path: str, client: Client = None) -> Optional[str]:
    """Public URL of a file in a public bucket."""
    client = client or get_supabase_client()
    url = client.storage.from_(bucket).get_public_url(storage_path)
    # Some client versions return a dict
    if isinstance(url, dict):
        url = url.get('publicUrl') or url.get('publicURL')
    return url
