"""ProDraft API: AI-assisted text polishing behind a per-client rate limit.

Modules grouped by responsibility:
- client_identity / rate_limit: request admission for the generate endpoint
- llm_base / llm_factory / *_client: interchangeable generation providers
- prompt_builder / output_parser / input_sanitizer: prompt in, variations out
- routers: the HTTP surface (generate, export)
"""
