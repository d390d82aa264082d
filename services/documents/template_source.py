"""
Template Loader

Fetches the blank transaction form. The hosted copy in Supabase storage
is preferred; local copies shipped with the deployment are tried next.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

import requests

from .exceptions import TemplateUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_URL = (
    'https://rkqoexexgrmeevzffouq.supabase.co/storage/v1/object/public/'
    'transaction-documents//mergedTC.pdf'
)
DEFAULT_FALLBACK_PATHS = ('public/mergedTC.pdf', '../public/mergedTC.pdf')

# Request timeout
DEFAULT_TIMEOUT = 30


class TemplateLoader:
    """
    Loads template bytes from the first source that answers.

    Usage:
        loader = TemplateLoader(url, fallback_paths=['public/mergedTC.pdf'])
        template_bytes = loader.load()
    """

    def __init__(
        self,
        url: Optional[str] = DEFAULT_TEMPLATE_URL,
        fallback_paths: Sequence[str] = DEFAULT_FALLBACK_PATHS,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session = None
    ):
        self.url = url
        self.fallback_paths = list(fallback_paths or [])
        self.timeout = timeout
        self.session = session or requests.Session()

    def load(self) -> bytes:
        """
        Return the template bytes.

        Raises:
            TemplateUnavailable: if neither the URL nor any fallback path works
        """
        attempts: List[str] = []

        if self.url:
            try:
                return self._fetch_remote()
            except (requests.exceptions.RequestException, ValueError) as e:
                logger.warning(f"Template fetch from {self.url} failed: {e}")
                attempts.append(f"{self.url}: {e}")

        for candidate in self.fallback_paths:
            path = self._resolve(candidate)
            try:
                content = path.read_bytes()
            except OSError as e:
                logger.warning(f"Template not readable at {path}: {e}")
                attempts.append(f"{path}: {e}")
                continue

            if not content:
                logger.warning(f"Template at {path} is empty")
                attempts.append(f"{path}: empty file")
                continue

            logger.info(f"Loaded template from {path} ({len(content)} bytes)")
            return content

        raise TemplateUnavailable(
            "Could not load PDF template from any source: " + "; ".join(attempts),
            attempts=attempts
        )

    def _fetch_remote(self) -> bytes:
        response = self.session.get(self.url, timeout=self.timeout)
        response.raise_for_status()
        if not response.content:
            raise ValueError("empty response body")
        logger.info(f"Loaded template from {self.url} ({len(response.content)} bytes)")
        return response.content

    @staticmethod
    def _resolve(candidate: str) -> Path:
        """Relative paths are taken from the process working directory."""
        path = Path(candidate)
        if not path.is_absolute():
            path = Path(os.getcwd()) / path
        return path
