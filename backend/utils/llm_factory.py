import json
import os
from typing import Any, Dict, Optional

from langchain_core.messages import HumanMessage, SystemMessage

# Google Gemini
from langchain_google_genai import ChatGoogleGenerativeAI

# OpenAI (also used for Groq via OpenAI-compatible API)
from langchain_openai import ChatOpenAI

from utils.json_utils import safe_json_loads


# --------------------------------------------------
# Model candidates
# --------------------------------------------------

PROVIDER_MODELS = {
    "gemini": ["gemini-2.0-flash", "gemini-1.5-pro", "gemini-1.5-flash"],
    "openai": ["gpt-4o-mini", "gpt-4o"],
    "grok": ["llama-3.3-70b-versatile", "llama-3.1-8b-instant"],
}

PROVIDER_KEYS = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "grok": "GROK_API_KEY",
}

# Order tried when LLM_PROVIDER=auto
AUTO_ORDER = ("grok", "gemini", "openai")

GROK_BASE_URL = "https://api.groq.com/openai/v1"

JSON_SYSTEM_PROMPT = """
You are the analytics engine of a business-intelligence dashboard.
Reply with ONLY valid JSON matching this JSON schema, no prose, no code fences:

{schema}
"""


class LLMFactory:
    """
    Centralized LLM access.
    Supports Google Gemini, OpenAI, or Grok (Groq) based on .env config.
    """

    _llm: Optional[object] = None
    _provider: Optional[str] = None
    _model: Optional[str] = None

    @classmethod
    def reset(cls):
        """Reset cached LLM (useful when switching providers)."""
        cls._llm = None
        cls._provider = None
        cls._model = None

    @classmethod
    def get_llm(cls, temperature: float = 0):
        if cls._llm is not None:
            return cls._llm

        provider_pref = os.getenv("LLM_PROVIDER", "auto").lower()
        if provider_pref == "google":
            provider_pref = "gemini"

        if provider_pref in PROVIDER_KEYS:
            key_name = PROVIDER_KEYS[provider_pref]
            if not os.getenv(key_name):
                raise RuntimeError(f"LLM_PROVIDER={provider_pref} but {key_name} not set")
            return cls._init_provider(provider_pref, temperature)

        if provider_pref == "auto":
            for provider in AUTO_ORDER:
                if os.getenv(PROVIDER_KEYS[provider]):
                    return cls._init_provider(provider, temperature)

            raise RuntimeError(
                "No LLM API keys found. "
                "Set GEMINI_API_KEY, OPENAI_API_KEY, or GROK_API_KEY"
            )

        raise RuntimeError(f"Unknown LLM_PROVIDER: {provider_pref}")

    @classmethod
    def _build(cls, provider: str, model: str, temperature: float):
        api_key = os.getenv(PROVIDER_KEYS[provider])
        if provider == "gemini":
            return ChatGoogleGenerativeAI(model=model, temperature=temperature, google_api_key=api_key)
        if provider == "grok":
            return ChatOpenAI(model=model, temperature=temperature, api_key=api_key, base_url=GROK_BASE_URL)
        return ChatOpenAI(model=model, temperature=temperature, api_key=api_key)

    @classmethod
    def _init_provider(cls, provider: str, temperature: float):
        last_error = None

        for model in PROVIDER_MODELS[provider]:
            try:
                llm = cls._build(provider, model, temperature)
                llm.invoke([HumanMessage(content="ping")])

                cls._llm = llm
                cls._provider = provider
                cls._model = model

                print(f"[LLM] Using {provider} model: {model}")
                return llm

            except Exception as e:
                print(f"[LLM] {provider} model unavailable: {model} — {e}")
                last_error = e

        raise RuntimeError(
            f"All {provider} models failed. "
            f"Check {PROVIDER_KEYS[provider]} or model availability."
        ) from last_error

    # --------------------------------------------------
    # Structured invocation
    # --------------------------------------------------

    @classmethod
    def invoke_json(cls, prompt: str, response_schema: Dict[str, Any], temperature: float = 0) -> Any:
        """
        Send `prompt` and parse the reply as JSON shaped by `response_schema`.
        Raises ValueError when the reply is not JSON and RuntimeError when
        the provider call itself fails.
        """
        llm = cls.get_llm(temperature=temperature)
        try:
            response = llm.invoke([
                SystemMessage(content=JSON_SYSTEM_PROMPT.format(schema=json.dumps(response_schema, indent=2))),
                HumanMessage(content=prompt),
            ])
        except Exception as e:
            print(f"[LLM] {cls._provider} call failed: {e}")
            raise RuntimeError(f"LLM request failed: {e}") from e
        return safe_json_loads(response.content)

    # --------------------------------------------------
    # Info
    # --------------------------------------------------

    @classmethod
    def info(cls) -> dict:
        return {
            "provider": cls._provider,
            "model": cls._model
        }
