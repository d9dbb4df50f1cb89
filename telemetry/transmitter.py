"""
HTTP transmitter for delivering a compressed batch to the collector.
"""
import gzip
import logging
import zlib
from typing import Optional

import requests

from . import config
from .config import Destination
from .exceptions import CompressionError

logger = logging.getLogger(__name__)


class Transmitter:
    """Sends one gzip-compressed batch per call to a fixed destination."""

    def __init__(
        self,
        destination: Optional[Destination] = None,
        compression_level: Optional[int] = None,
        dry_run: bool = False
    ):
        """
        Initialize the transmitter.

        Args:
            destination (Destination, optional): Collector endpoint. Defaults to config.DEFAULT_DESTINATION.
            compression_level (int, optional): gzip level. Defaults to config.COMPRESSION_LEVEL.
            dry_run (bool): If True, log the batch instead of sending it
        """
        self.destination = destination or config.DEFAULT_DESTINATION
        self.compression_level = compression_level if compression_level is not None else config.COMPRESSION_LEVEL
        self.dry_run = dry_run

    def compress(self, body: bytes) -> bytes:
        """
        Compress the batch.

        Raises:
            CompressionError: If gzip fails
        """
        try:
            return gzip.compress(body, compresslevel=self.compression_level)
        except (zlib.error, ValueError) as e:
            raise CompressionError(f"Failed to gzip data to send: {e}") from e

    def process(self, body: bytes) -> bool:
        """
        Compress and POST the batch.

        Args:
            body (bytes): Serialized metrics

        Returns:
            bool: True if the collector answered with an empty body, False otherwise

        Raises:
            CompressionError: If the batch cannot be compressed
        """
        content = self.compress(body)

        if self.dry_run:
            logger.info("DRY RUN: Would send %d bytes (%d compressed) to %s:\n%s",
                        len(body), len(content), self.destination.url,
                        body.decode('utf-8', errors='replace'))
            return True

        headers = {
            'Content-Encoding': 'gzip',
            'Content-Type': 'application/x-www-form-urlencoded',
            'Content-Length': str(len(content))
        }

        try:
            response = requests.post(
                self.destination.url,
                data=content,
                headers=headers,
                timeout=self.destination.timeout,
                allow_redirects=False
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning(f"Failed to send metrics: {str(e)}")
            return False

        if response.is_redirect:
            logger.warning("Collector redirected to %s, not following", response.headers.get('Location'))
            return False

        if response.text != '':
            logger.warning("Collector rejected metrics: %s", response.text[:200])
            return False

        logger.debug("Sent %d bytes to %s", len(content), self.destination.url)
        return True
