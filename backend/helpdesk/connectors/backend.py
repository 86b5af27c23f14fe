"""REST backend connector.

Thin synchronous wrapper over the helpdesk backend routes. It translates
transport and HTTP failures into the ``helpdesk.errors`` taxonomy; callers
narrow ``BackendError`` into lookup/transition/comment failures where the
distinction matters. A 401 always surfaces as ``Unauthorized``.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple
import httpx
from helpdesk.errors import BackendError, NotFound, Unauthorized

logger = logging.getLogger(__name__)

TRANSITION_ACTIONS = ('complete', 'approve', 'reject', 'close')


class BackendConnector:
    """Connector for the helpdesk REST backend."""

    def __init__(self, base_url: str, token: str = None, timeout: float = 10.0, transport: httpx.BaseTransport = None):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        self._client.close()

    def _get_headers(self) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        return headers

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f'HTTP {response.status_code}'
        if isinstance(body, dict):
            return body.get('message') or body.get('error') or f'HTTP {response.status_code}'
        return f'HTTP {response.status_code}'

    def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, path, headers=self._get_headers(), **kwargs)
        except httpx.TimeoutException as e:
            logger.warning('Backend timeout on %s %s', method, path)
            raise BackendError('Backend request timed out', status_code=504) from e
        except httpx.HTTPError as e:
            logger.warning('Backend unreachable on %s %s: %s', method, path, e)
            raise BackendError(f'Backend unreachable: {e}') from e
        if response.status_code == 401:
            raise Unauthorized(self._error_message(response))
        if response.status_code == 404:
            raise NotFound(self._error_message(response))
        if response.status_code >= 400:
            message = self._error_message(response)
            logger.info('Backend %s %s failed with %s: %s', method, path, response.status_code, message)
            status = response.status_code if response.status_code < 500 else 502
            raise BackendError(message, status_code=status)
        return response

    def _data(self, method: str, path: str, **kwargs) -> Any:
        response = self.request(method, path, **kwargs)
        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError as e:
            raise BackendError('Backend returned malformed JSON') from e
        if isinstance(body, dict) and 'data' in body:
            return body['data']
        return body

    def _list(self, path: str) -> List[Any]:
        data = self._data('GET', path)
        return data if isinstance(data, list) else []

    # Lookups
    def get_categories(self) -> List[Any]:
        return self._list('/lookups/categories')

    def get_departments(self) -> List[Any]:
        return self._list('/lookups/departments')

    def get_companies(self) -> List[Any]:
        return self._list('/lookups/companies')

    def get_issue_types(self, category_id: str) -> List[Any]:
        return self._list(f'/lookups/issue-types/{category_id}')

    def get_request_types(self, category_id: str) -> List[Any]:
        return self._list(f'/lookups/request-types/{category_id}')

    def get_users_by_category(self, category_id: str) -> List[Any]:
        return self._list(f'/user/category/{category_id}/users')

    def get_profile(self) -> Dict[str, Any]:
        return self._data('GET', '/user/profile') or {}

    # Tickets
    def list_tickets(self, params: Optional[Dict[str, Any]] = None, mine: bool = False) -> Dict[str, Any]:
        path = '/tickets/my-tickets' if mine else '/tickets'
        data = self._data('GET', path, params=params or {})
        if isinstance(data, list):
            return {'tickets': data, 'pagination': None, 'summary': None}
        data = data or {}
        return {
            'tickets': data.get('tickets') or [],
            'pagination': data.get('pagination'),
            'summary': data.get('summary'),
        }

    def get_ticket(self, ticket_id: str) -> Dict[str, Any]:
        return self._data('GET', f'/tickets/{ticket_id}') or {}

    def create_ticket(self, fields: Dict[str, Any], files: Optional[List[Tuple[str, bytes, str]]] = None) -> Dict[str, Any]:
        if files:
            multipart = [('attachments', (name, content, mimetype)) for name, content, mimetype in files]
            form = {k: str(v) for k, v in fields.items() if v is not None}
            return self._data('POST', '/tickets', data=form, files=multipart) or {}
        return self._data('POST', '/tickets', json=fields) or {}

    def assign(self, ticket_id: str, assignee_id: str) -> Dict[str, Any]:
        return self._data('PUT', f'/tickets/{ticket_id}/assign', json={'assignToId': assignee_id}) or {}

    def set_status(self, ticket_id: str, status: str) -> Dict[str, Any]:
        return self._data('PUT', f'/tickets/{ticket_id}/status', json={'statusId': status}) or {}

    def mark_processing(self, ticket_id: str, comment: str, send_email: bool = True) -> Dict[str, Any]:
        payload = {'sendEmail': send_email, 'comment': comment}
        return self._data('PUT', f'/tickets/{ticket_id}/processing', json=payload) or {}

    def transition(self, ticket_id: str, action: str, send_email: bool = True) -> Dict[str, Any]:
        if action not in TRANSITION_ACTIONS:
            raise ValueError(f'Unknown transition endpoint {action}')
        return self._data('PUT', f'/tickets/{ticket_id}/{action}', json={'sendEmail': send_email}) or {}

    def list_comments(self, ticket_id: str) -> List[Any]:
        return self._list(f'/tickets/{ticket_id}/comments')

    def add_comment(self, ticket_id: str, text: str) -> Dict[str, Any]:
        return self._data('POST', f'/tickets/{ticket_id}/comments', json={'comment': text}) or {}

    def attachment_download_url(self, attachment_id: str) -> str:
        return f'{self.base_url}/tickets/attachments/{attachment_id}/download'

    def download_attachment(self, attachment_id: str) -> Tuple[bytes, str, Optional[str]]:
        response = self.request('GET', f'/tickets/attachments/{attachment_id}/download')
        disposition = response.headers.get('Content-Disposition', '')
        filename = None
        if 'filename=' in disposition:
            filename = disposition.split('filename=', 1)[1].strip().strip('"')
        return response.content, response.headers.get('Content-Type', 'application/octet-stream'), filename


__all__ = ['BackendConnector', 'TRANSITION_ACTIONS']
