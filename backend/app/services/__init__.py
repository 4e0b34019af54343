# Services package init
"""
NoteGist Backend — Services Layer
===================================

Service Inventory:
    - input_validator:  raw JSON body → SummarizeRequest
    - token_verifier:   Authorization header → AuthClaims (JWKS-backed JWT check)
    - llm_base:         ProviderAdapter interface, FailureCause, result values
    - gemini_service:   GeminiAdapter (primary)
    - openai_service:   OpenAIAdapter (secondary)
    - orchestrator:     ordered fallback chain + demo summary
    - error_classifier: exception → ClassifiedError (stable error contract)
"""
