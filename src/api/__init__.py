"""API: camada de borda do Proxy Gateway.

Responsabilidades:
- Receber requests do cliente (browser ou CLI em modo gateway)
- Validar corpos e aplicar rate limit por IP
- Repassar chamadas ao Gemini com a credencial do servidor

NÃO PODE conter: política de retry, orquestração de use cases.
"""
