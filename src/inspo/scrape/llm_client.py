"""LiteLLM client wrapper with retry, backoff, and API key validation.

Metadata enrichment routes its completions through this module.
LiteLLM's built-in retry is used (num_retries, exponential backoff).
"""

from __future__ import annotations

import os

import litellm

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    """Return the provider prefix of a 'provider/model' string (default openai)."""
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider)

    if env_var is None:
        return  # No key required (e.g. ollama) or provider unknown to us

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def complete(
    model: str,
    messages: list[dict],
    max_tokens: int = 512,
    temperature: float = 0.0,
    num_retries: int = 2,
    timeout: float | None = None,
) -> str:
    """Call litellm.completion() with retry/backoff. Returns content string.

    Args:
        model: LiteLLM model string (provider/model format).
        messages: OpenAI-style message list.
        max_tokens: Maximum output tokens.
        temperature: Sampling temperature (0 = deterministic).
        num_retries: Number of retries on transient errors (exponential backoff).
        timeout: Per-request timeout in seconds (None = LiteLLM default).

    Raises:
        litellm.exceptions.APIError: On persistent API failure after retries.
    """
    kwargs: dict = {}
    if timeout is not None:
        kwargs["timeout"] = timeout
    response = litellm.completion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        num_retries=num_retries,
        **kwargs,
    )
    return response.choices[0].message.content or ""
