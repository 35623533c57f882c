# ============================================================================

import asyncio
import logging

import requests

from intelligent_query.exceptions import DocumentUnavailable, InvalidInput

logger = logging.getLogger(__name__)


def decode_document(data: bytes) -> str:
    """Decode raw document bytes as UTF-8, dropping undecodable bytes"""
    text = data.decode("utf-8", errors="ignore")
    return text.replace("\x00", "")


class DocumentLoader:
    """Downloads a document and hands its text to the query pipeline"""

    def __init__(self, max_bytes: int = 10 * 1024 * 1024, timeout: float = 30.0, max_attempts: int = 3):
        self.max_bytes = max_bytes
        self.timeout = timeout
        self.max_attempts = max_attempts

    async def load_text(self, url: str) -> str:
        """Download a document and decode it to text"""
        if not url or not url.startswith(('http://', 'https://')):
            raise InvalidInput('Document URL must be a valid HTTP/HTTPS URL')

        logger.info(f"🔍 Downloading document: {url[:50]}...")
        data = await self._download_document(url)
        logger.info(f"📄 Document downloaded, size: {len(data)} bytes")
        return decode_document(data)

    async def _download_document(self, url: str) -> bytes:
        """Download document with retries"""
        loop = asyncio.get_running_loop()
        last_error = None

        for attempt in range(self.max_attempts):
            try:
                return await loop.run_in_executor(None, self._fetch, url)
            except DocumentUnavailable:
                raise
            except requests.RequestException as e:
                last_error = e
                logger.warning(f"⚠️ Download attempt {attempt + 1} failed: {e}")
                if attempt < self.max_attempts - 1:
                    await asyncio.sleep(1)

        raise DocumentUnavailable(f"Failed to download document: {last_error}")

    def _fetch(self, url: str) -> bytes:
        response = requests.get(url, timeout=self.timeout, stream=True)
        try:
            response.raise_for_status()

            content = bytearray()
            for block in response.iter_content(chunk_size=8192):
                content.extend(block)
                if len(content) > self.max_bytes:
                    raise DocumentUnavailable(
                        f"Document too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB."
                    )
            return bytes(content)
        finally:
            response.close()

# ============================================================================
