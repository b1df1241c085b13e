import httpx
import logging
from lms.core.exceptions import LMSAPIError

logger = logging.getLogger(__name__)

class LMSClient:

    API_URL = "http://localhost:8080/v1/api"
    HTTP_HEADERS = {"User-Agent": "LMSClient/1.0"}

    def __init__(self, api_url: str = None, timeout: int = 30, transport=None):
        self.api_url = (api_url or self.API_URL).rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _request(self, method: str, path: str, **kwargs):
        with httpx.Client(
                base_url=self.api_url, headers=self.HTTP_HEADERS,
                timeout=self.timeout, transport=self.transport) as client:
            try:
                response = client.request(method, path, **kwargs)
            except httpx.HTTPError as e:
                logger.error(f"Error calling LMS ({method} {path}): {e}")
                raise LMSAPIError(f"Could not reach LMS: {e}") from e
        if response.is_error:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            logger.info(f"LMS rejected {method} {path}: {response.status_code} {message}")
            error = LMSAPIError(message)
            error.status_code = response.status_code
            raise error
        return response.json()

    def add_book(self, title: str, author: str, total_copies: int = 1) -> dict:
        return self._request("POST", "/books", json={
            "title": title,
            "author": author,
            "totalCopies": total_copies
        })

    def borrow(self, book_id: int, borrower_id: int) -> dict:
        return self._request("POST", "/transactions/borrow", json={
            "bookId": book_id,
            "borrowerId": borrower_id
        })

    def return_book(self, transaction_id: int) -> dict:
        return self._request("POST", "/transactions/return", json={
            "transactionId": transaction_id
        })

    def list_transactions(self) -> list:
        return self._request("GET", "/transactions/")
