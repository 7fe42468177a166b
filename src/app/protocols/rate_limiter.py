"""Protocolo de admissão por cliente do Proxy Gateway."""

from __future__ import annotations

from abc import ABC, abstractmethod


class RateLimiterProtocol(ABC):
    """Contrato mínimo de rate limiting.

    Método canônico:
    - allow(client_id) -> bool
      Conta a requisição e retorna False quando o cliente excedeu o limite.

    Implementações duráveis (ex.: Redis) substituem a versão em memória
    sem mudar os handlers.
    """

    @abstractmethod
    def allow(self, client_id: str) -> bool:
        """Registra uma requisição do cliente e decide se ela é admitida.

        Args:
            client_id: Identificador do cliente (ex.: IP)

        Returns:
            True se admitida; False se o limite da janela foi excedido.
        """
