"""HTTP client for the marketplace API."""
import logging
from typing import Any, Dict, Optional

import requests

from config import settings_conf

logger = logging.getLogger(__name__)

class APIError(Exception):
    """Raised when the API rejects a request"""
    def __init__(self, message: str, status_code: Optional[int] = None, reason: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"API Error [{status_code}] {reason}: {message}" if reason else message)

class MarketplaceClient:
    """Client acting as one chain account"""

    def __init__(self, api_url: Optional[str] = None, timeout: float = 30.0):
        self.api_url = (api_url or settings_conf['api_url']).rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.address: Optional[str] = None
        self._contracts: Optional[Dict[str, str]] = None

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self.session.request(
                method, f"{self.api_url}{path}", timeout=self.timeout, **kwargs
            )
        except requests.exceptions.ConnectionError as e:
            raise APIError(f"Failed to connect to {self.api_url}: {e}")

        if response.status_code >= 400:
            try:
                detail = response.json().get('detail')
            except ValueError:
                detail = response.text
            if isinstance(detail, dict):
                raise APIError(detail.get('message', ''), response.status_code, detail.get('error'))
            raise APIError(str(detail), response.status_code)
        return response.json()

    def accounts(self) -> list:
        return self._request('GET', '/chain/accounts')

    def login(self, address: Optional[str] = None, account_index: int = 0) -> str:
        """Log in as an address, or as the account at an index"""
        if address is None:
            address = self.accounts()[account_index]['address']
        result = self._request('POST', '/auth/login', json={'address': address})
        self.session.headers['Authorization'] = f"Bearer {result['token']}"
        self.address = result['address']
        return self.address

    def get_contract(self, name: str) -> str:
        """Get a deployed contract address by name"""
        if self._contracts is None:
            self._contracts = self._request('GET', '/chain/contracts')
        return self._contracts[name]

    def mint_nft(self) -> Dict[str, Any]:
        return self._request('POST', '/nft/mint')

    def approve(self, spender: str, token_id: int) -> Dict[str, Any]:
        return self._request('POST', f'/nft/{token_id}/approve', json={'spender': spender})

    def list_item(self, nft_address: str, token_id: int, price: int) -> Dict[str, Any]:
        return self._request('POST', '/listings', json={
            'nft_address': nft_address,
            'token_id': token_id,
            'price': price
        })

    def get_listing(self, nft_address: str, token_id: int) -> Dict[str, Any]:
        return self._request('GET', f'/listings/{nft_address}/{token_id}')

    def update_listing(self, nft_address: str, token_id: int, price: int) -> Dict[str, Any]:
        return self._request('PUT', f'/listings/{nft_address}/{token_id}', json={'price': price})

    def cancel_listing(self, nft_address: str, token_id: int) -> Dict[str, Any]:
        return self._request('DELETE', f'/listings/{nft_address}/{token_id}')

    def buy_item(self, nft_address: str, token_id: int, value: int) -> Dict[str, Any]:
        return self._request('POST', f'/listings/{nft_address}/{token_id}/buy', json={'value': value})

    def get_proceeds(self, address: str) -> int:
        return int(self._request('GET', f'/proceeds/{address}')['proceeds'])

    def withdraw_proceeds(self) -> Dict[str, Any]:
        return self._request('POST', '/proceeds/withdraw')

__all__ = ['MarketplaceClient', 'APIError']
