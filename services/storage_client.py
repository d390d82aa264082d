"""
Storage API Client

Thin wrapper around the two internal endpoints the delivery pipeline
posts to: the PDF upload endpoint and the Airtable attachment update
endpoint. Handles request building and error handling.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests

from services.documents.exceptions import StorageAPIError

logger = logging.getLogger(__name__)

# Request timeout
DEFAULT_TIMEOUT = 30

DEFAULT_ATTACHMENT_FIELD_ID = 'fldhrYdoFwtNfzdFY'


class StorageAPIClient:
    """
    Client for the upload and record-update endpoints.

    Usage:
        client = StorageAPIClient(upload_url, update_url)
        result = client.upload_pdf(document.data_uri, document.filename, record_id)
        client.update_attachment(result['url'], document.filename, record_id)
    """

    def __init__(
        self,
        upload_url: str,
        update_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session = None
    ):
        self.upload_url = upload_url
        self.update_url = update_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def upload_pdf(
        self,
        pdf_data: str,
        filename: str,
        transaction_id: Optional[str],
        base_url: str = None
    ) -> Dict[str, Any]:
        """
        Upload a PDF and get back its public URL.

        Args:
            pdf_data: data:application/pdf;base64,... URI
            filename: Document filename
            transaction_id: Airtable record to attach to, if any
            base_url: Resolves a relative endpoint, usually the request host

        Returns:
            Endpoint response with at least 'url'; 'airtableUpdated' tells
            whether the endpoint already attached the file to the record
        """
        result = self._post(self.endpoint(self.upload_url, base_url), {
            'pdfData': pdf_data,
            'filename': filename,
            'transactionId': transaction_id,
        })
        if not result.get('url'):
            raise StorageAPIError(
                "Upload endpoint returned no URL",
                response_body=str(result)
            )
        return result

    def update_attachment(
        self,
        pdf_url: str,
        filename: str,
        transaction_id: str,
        field_id: str = DEFAULT_ATTACHMENT_FIELD_ID,
        base_url: str = None
    ) -> Dict[str, Any]:
        """Ask the update endpoint to point the attachment field at pdf_url."""
        return self._post(self.endpoint(self.update_url, base_url), {
            'pdfData': pdf_url,
            'filename': filename,
            'transactionId': transaction_id,
            'fieldId': field_id,
        })

    @staticmethod
    def endpoint(url: str, base_url: str = None) -> str:
        """Absolute endpoint URL; relative paths need a base URL."""
        if url and url.startswith(('http://', 'https://')):
            return url
        if not url or not base_url:
            raise StorageAPIError(f"Endpoint {url!r} is not absolute and no base URL is known")
        return urljoin(base_url, url)

    def _post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            error_body = None
            status_code = None

            if getattr(e, 'response', None) is not None:
                status_code = e.response.status_code
                error_body = e.response.text

            logger.error(f"POST {url} failed: {e}")
            if error_body:
                logger.error(f"Response body: {error_body}")

            raise StorageAPIError(
                f"Request to {url} failed: {e}",
                status_code=status_code,
                response_body=error_body
            ) from e

        try:
            result = response.json()
        except ValueError as e:
            raise StorageAPIError(
                f"Invalid JSON from {url}",
                status_code=response.status_code,
                response_body=response.text
            ) from e

        if not isinstance(result, dict) or result.get('success') is False:
            error = result.get('error') if isinstance(result, dict) else None
            raise StorageAPIError(
                f"{url} reported failure: {error or result}",
                status_code=response.status_code,
                response_body=response.text
            )

        return result
