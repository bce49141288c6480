"""
Evolution API client

Sends WhatsApp messages through a self-hosted Evolution API instance.
Every call returns a result dict with a ``success`` flag and an ``error``
message instead of raising, so callers can treat WhatsApp as best-effort.
"""

import os
import re
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

STATUS_TIMEOUT = 5
DEFAULT_TIMEOUT = 10
SEND_TIMEOUT = 15


class EvolutionConfig:
    """Configuration for the Evolution API from environment variables."""

    def __init__(self):
        self.api_url = os.getenv('EVOLUTION_API_URL', 'http://localhost:8080').rstrip('/')
        self.instance_name = os.getenv('EVOLUTION_INSTANCE_NAME', 'atacado')
        self.api_key = os.getenv('EVOLUTION_API_KEY', '')

    def is_configured(self) -> bool:
        return bool(self.api_url and self.instance_name)


def format_whatsapp_number(phone: str) -> str:
    """Digits only, with the Brazil country code: (63) 99999-7942 -> 5563999997942."""
    cleaned = re.sub(r'\D', '', phone or '')
    if len(cleaned) >= 12 and cleaned.startswith('55'):
        return cleaned
    return f"55{cleaned}"


def _qrcode_from(data: Dict[str, Any]) -> Optional[str]:
    qrcode = data.get('qrcode')
    return data.get('base64') or data.get('code') or (qrcode.get('base64') if isinstance(qrcode, dict) else None)


class EvolutionClient:
    """Thin wrapper over the Evolution API instance and message endpoints."""

    def __init__(self, config: Optional[EvolutionConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or EvolutionConfig()
        self.http = session or requests

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.config.api_key:
            headers['apikey'] = self.config.api_key
        return headers

    def _url(self, path: str) -> str:
        return f"{self.config.api_url}{path}"

    @staticmethod
    def _error_message(response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        message = payload.get('message') if isinstance(payload, dict) else None
        if isinstance(message, list):
            message = '; '.join(str(m) for m in message)
        return str(message or f"HTTP {response.status_code}")

    def fetch_instances(self) -> Dict[str, Any]:
        """Ping the API. ``success`` is True when it answers."""
        try:
            response = self.http.get(self._url('/instance/fetchInstances'), headers=self._headers(), timeout=STATUS_TIMEOUT)
        except requests.RequestException as e:
            logger.warning("evolution_unreachable url=%s error=%s", self.config.api_url, e)
            return {'success': False, 'error': 'Evolution API não está acessível'}
        if not response.ok:
            return {'success': False, 'error': self._error_message(response)}
        return {'success': True, 'instances': response.json()}

    def get_connection_state(self) -> Dict[str, Any]:
        try:
            response = self.http.get(
                self._url(f'/instance/connectionState/{self.config.instance_name}'),
                headers=self._headers(),
                timeout=DEFAULT_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.warning("evolution_state_failed error=%s", e)
            return {'success': False, 'connected': False, 'state': 'close', 'error': str(e)}
        if not response.ok:
            return {'success': False, 'connected': False, 'state': 'close', 'error': self._error_message(response)}
        data = response.json() or {}
        # Newer releases nest the state under "instance"
        instance = data.get('instance') if isinstance(data.get('instance'), dict) else {}
        state = data.get('state') or instance.get('state') or 'close'
        return {
            'success': True,
            'state': state,
            'connected': state == 'open',
            'phone': instance.get('owner'),
        }

    def connect(self) -> Dict[str, Any]:
        """Request the QR code of an existing instance."""
        try:
            response = self.http.get(
                self._url(f'/instance/connect/{self.config.instance_name}'),
                headers=self._headers(),
                timeout=DEFAULT_TIMEOUT,
            )
        except requests.RequestException as e:
            return {'success': False, 'error': str(e)}
        if not response.ok:
            return {'success': False, 'error': 'Erro ao conectar instância existente'}
        return {'success': True, 'qrcode': _qrcode_from(response.json() or {})}

    def create_instance(self) -> Dict[str, Any]:
        """Create the instance (or connect it when it already exists) and return its QR code."""
        state = self.get_connection_state()
        if state.get('connected'):
            return {'success': True, 'already_connected': True}
        payload = {
            'instanceName': self.config.instance_name,
            'qrcode': True,
            'integration': 'WHATSAPP-BAILEYS',
        }
        try:
            response = self.http.post(
                self._url('/instance/create'), json=payload, headers=self._headers(), timeout=SEND_TIMEOUT,
            )
        except requests.RequestException as e:
            return {'success': False, 'error': str(e)}
        if not response.ok:
            message = self._error_message(response)
            if response.status_code == 409 or 'already' in message.lower():
                return self.connect()
            return {'success': False, 'error': message}
        qrcode = _qrcode_from(response.json() or {})
        if qrcode:
            return {'success': True, 'qrcode': qrcode}
        return self.connect()

    def logout(self) -> Dict[str, Any]:
        try:
            response = self.http.delete(
                self._url(f'/instance/logout/{self.config.instance_name}'),
                headers=self._headers(),
                timeout=DEFAULT_TIMEOUT,
            )
        except requests.RequestException as e:
            return {'success': False, 'error': str(e)}
        if not response.ok:
            return {'success': False, 'error': self._error_message(response)}
        return {'success': True}

    def delete_instance(self) -> Dict[str, Any]:
        try:
            response = self.http.delete(
                self._url(f'/instance/delete/{self.config.instance_name}'),
                headers=self._headers(),
                timeout=DEFAULT_TIMEOUT,
            )
        except requests.RequestException as e:
            return {'success': False, 'error': str(e)}
        if not response.ok:
            return {'success': False, 'error': 'Erro ao desconectar instância'}
        return {'success': True}

    def disconnect(self) -> Dict[str, Any]:
        """Logout then delete the instance; a failed logout does not stop the delete."""
        logout = self.logout()
        if not logout['success']:
            logger.info("evolution_logout_failed error=%s", logout.get('error'))
        return self.delete_instance()

    def send_text(self, number: str, text: str) -> Dict[str, Any]:
        """
        Send a text message.

        Returns:
            Dict with 'success', 'message_id' and 'error' keys
        """
        if not self.config.is_configured():
            return {'success': False, 'error': 'Evolution API não configurada'}
        state = self.get_connection_state()
        if not state.get('connected'):
            return {'success': False, 'error': 'WhatsApp não está conectado'}
        phone = format_whatsapp_number(number)
        try:
            response = self.http.post(
                self._url(f'/message/sendText/{self.config.instance_name}'),
                json={'number': phone, 'text': text},
                headers=self._headers(),
                timeout=SEND_TIMEOUT,
            )
        except requests.Timeout:
            return {'success': False, 'error': 'Evolution API não respondeu a tempo'}
        except requests.RequestException as e:
            logger.warning("evolution_send_failed number=%s error=%s", phone, e)
            return {'success': False, 'error': 'Evolution API não está acessível'}
        if not response.ok:
            message = self._error_message(response)
            if 'not connected' in message.lower():
                message = 'WhatsApp desconectado'
            elif 'invalid number' in message.lower() or 'exists' in message.lower():
                message = f'Número de telefone inválido: {number}'
            logger.warning("evolution_send_rejected number=%s status=%s", phone, response.status_code)
            return {'success': False, 'error': message}
        data = response.json() or {}
        key = data.get('key') if isinstance(data.get('key'), dict) else {}
        logger.info("whatsapp_sent number=%s", phone)
        return {'success': True, 'message_id': key.get('id') or data.get('messageId')}


# Global client instance
_evolution_client = None


def get_evolution_client() -> EvolutionClient:
    """Get singleton Evolution API client."""
    global _evolution_client
    if _evolution_client is None:
        _evolution_client = EvolutionClient()
    return _evolution_client


def reset_evolution_client() -> None:
    """Drop the cached client so the next call re-reads the environment."""
    global _evolution_client
    _evolution_client = None
