"""
PlugNotas client for NF-e / NFC-e emission.

Unlike the WhatsApp client this one raises ``PlugNotasError`` on any
non-2xx answer; the invoicing service turns it into an ERROR invoice.
"""

import os
import re
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
DEFAULT_NCM = '1602.50.00'
DEFAULT_CFOP = '5102'
DEFAULT_TAX = 'icms102'


class PlugNotasError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CompanyConfig:
    """Invoice issuer data from environment variables."""

    def __init__(self):
        self.cnpj = os.getenv('COMPANY_CNPJ', '')
        self.state_registration = os.getenv('COMPANY_IE', '')
        self.legal_name = os.getenv('COMPANY_NAME', '')
        self.trade_name = os.getenv('COMPANY_TRADE_NAME', '') or self.legal_name
        self.street = os.getenv('COMPANY_STREET', '')
        self.number = os.getenv('COMPANY_NUMBER', 'S/N')
        self.district = os.getenv('COMPANY_DISTRICT', '')
        self.city = os.getenv('COMPANY_CITY', 'Gurupi')
        self.city_code = os.getenv('COMPANY_CITY_CODE', '1709500')
        self.uf = os.getenv('COMPANY_UF', 'TO')
        self.cep = re.sub(r'\D', '', os.getenv('COMPANY_CEP', ''))


class PlugNotasClient:
    def __init__(self, api_url: Optional[str] = None, api_key: Optional[str] = None,
                 session: Optional[requests.Session] = None):
        self.api_url = (api_url or os.getenv('PLUGNOTAS_API_URL', 'https://api.plugnotas.com.br')).rstrip('/')
        self.api_key = api_key if api_key is not None else os.getenv('PLUGNOTAS_API_KEY', '')
        self.http = session or requests

    def _request(self, method: str, path: str, payload: Any = None) -> Any:
        headers = {'Content-Type': 'application/json', 'x-api-key': self.api_key}
        try:
            response = self.http.request(method, f"{self.api_url}{path}", json=payload, headers=headers,
                                         timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            logger.warning("plugnotas_unreachable path=%s error=%s", path, e)
            raise PlugNotasError(f"PlugNotas indisponível: {e}") from e
        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get('message') if isinstance(body, dict) else None
            if not message and isinstance(body, dict) and isinstance(body.get('error'), dict):
                message = body['error'].get('message')
            raise PlugNotasError(message or f"Erro na requisição: {response.status_code}", response.status_code)
        return response.json()

    def emit_nfe(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('POST', '/nfe', payload)

    def emit_nfce(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('POST', '/nfce', payload)

    def get_invoice(self, gateway_id: str) -> Dict[str, Any]:
        return self._request('GET', f'/nfe/{gateway_id}')

    def cancel_invoice(self, gateway_id: str, reason: str) -> Dict[str, Any]:
        return self._request('POST', f'/nfe/{gateway_id}/cancelamento', {'motivo': reason})

    def download_xml(self, gateway_id: str) -> Optional[str]:
        return self._request('GET', f'/nfe/{gateway_id}/xml').get('xml')

    def download_pdf(self, gateway_id: str) -> Optional[str]:
        return self._request('GET', f'/nfe/{gateway_id}/pdf').get('pdf')


def payment_form(method: Optional[str]) -> str:
    """SEFAZ payment form code: PIX 99, card 03, cash 01, otherwise 99."""
    method = (method or '').upper()
    if 'PIX' in method:
        return '99'
    if 'CARD' in method or method == 'DEBIT':
        return '03'
    if 'CASH' in method:
        return '01'
    return '99'


def build_invoice_payload(
    *,
    invoice_type: str,
    integration_id: str,
    customer: Dict[str, Any],
    items: List[Dict[str, Any]],
    total: Decimal,
    payment_method: Optional[str],
    notes: Optional[str] = None,
    company: Optional[CompanyConfig] = None,
) -> Dict[str, Any]:
    """
    Build the PlugNotas document.

    ``customer`` keys: name, cpf_cnpj, email, phone, address, number,
    district, city, state, zip_code. ``items`` keys: code, description,
    quantity, unit_value, and optionally ncm / cfop.
    """
    company = company or CompanyConfig()
    cpf_cnpj = re.sub(r'\D', '', customer.get('cpf_cnpj') or '')
    recipient: Dict[str, Any] = {
        'nome': customer.get('name'),
        'email': customer.get('email'),
        'telefone': customer.get('phone'),
    }
    if cpf_cnpj:
        recipient['cpfCnpj'] = cpf_cnpj
        if customer.get('address'):
            recipient['endereco'] = {
                'tipoLogradouro': 'Rua',
                'logradouro': customer.get('address'),
                'numero': customer.get('number') or 'S/N',
                'bairro': customer.get('district') or '',
                'codigoCidade': company.city_code,
                'cidade': customer.get('city') or company.city,
                'uf': customer.get('state') or company.uf,
                'cep': re.sub(r'\D', '', customer.get('zip_code') or ''),
            }
    payload = {
        'idIntegracao': integration_id,
        'presencial': invoice_type == 'NFCE',
        'consumidorFinal': True,
        'natureza': 'Venda de mercadoria',
        'emitente': {
            'cpfCnpj': company.cnpj,
            'inscricaoEstadual': company.state_registration,
            'nome': company.legal_name,
            'nomeFantasia': company.trade_name,
            'endereco': {
                'tipoLogradouro': 'Avenida',
                'logradouro': company.street,
                'numero': company.number,
                'bairro': company.district,
                'codigoCidade': company.city_code,
                'cidade': company.city,
                'uf': company.uf,
                'cep': company.cep,
            },
        },
        'destinatario': {key: value for key, value in recipient.items() if value is not None},
        'itens': [
            {
                'numero': index,
                'codigo': item.get('code') or str(index),
                'descricao': item['description'],
                'ncm': item.get('ncm') or DEFAULT_NCM,
                'cfop': item.get('cfop') or DEFAULT_CFOP,
                'valor': float(item['unit_value']),
                'tributacao': DEFAULT_TAX,
                'quantidade': item['quantity'],
                'unidadeMedida': 'UN',
            }
            for index, item in enumerate(items, start=1)
        ],
        'pagamentos': [{'forma': payment_form(payment_method), 'valor': float(total)}],
    }
    if notes:
        payload['informacoesAdicionais'] = {'informacoesComplementares': notes}
    return payload


_plugnotas_client = None


def get_plugnotas_client() -> PlugNotasClient:
    global _plugnotas_client
    if _plugnotas_client is None:
        _plugnotas_client = PlugNotasClient()
    return _plugnotas_client


def reset_plugnotas_client() -> None:
    global _plugnotas_client
    _plugnotas_client = None
