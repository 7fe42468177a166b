"""App: coração do sistema: orquestração, casos de uso e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- domain/: tipos de mídia, tentativas e erros tipados
- use_cases/: caso de uso de transcrição
- services/: política de retry, classificação de erros, progresso
- infra/: transporte Gemini (direto e gateway) e stores em memória
- protocols/: contratos/interfaces
- observability/: correlation id e métricas via log estruturado
"""
