import logging
import os
from functools import lru_cache
from types import SimpleNamespace
from supabase import create_client, Client
from openai import OpenAI
from tenq.core.config import get_settings

_prompt_logger = logging.getLogger("tenq.llm_prompts")


@lru_cache
def get_supabase_client() -> Client:
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_service_key:
        raise RuntimeError("Supabase env vars missing (SUPABASE_URL / SUPABASE_SERVICE_KEY)")
    return create_client(settings.supabase_url, settings.supabase_service_key)


# ── Gemini adapter ──────────────────────────────────────────────────────────
# AIService only knows client.chat.completions.create(...). The adapter gives
# Gemini that surface and returns an OpenAI-shaped response object.

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_MAX_TOKENS = 4096


def _split_messages(messages) -> tuple[str | None, str]:
    system = [m["content"] for m in messages or [] if m.get("role") == "system"]
    user = [m["content"] for m in messages or [] if m.get("role") != "system"]
    return "\n\n".join(system) or None, "\n\n".join(user)


def _openai_shaped(text: str) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


class _GeminiCompletions:
    def __init__(self, api_key: str):
        self._api_key = api_key

    def create(self, model=None, messages=None, temperature=0.7, max_tokens=None, **kwargs):
        from google import genai
        from google.genai import types

        system_instruction, user_prompt = _split_messages(messages)
        gemini_model = model if model and model.startswith("gemini") else DEFAULT_GEMINI_MODEL
        max_tokens = max_tokens or DEFAULT_MAX_TOKENS

        if os.environ.get("DEBUG_LLM_PROMPTS", "").lower() in ("1", "true"):
            _prompt_logger.warning(
                "model=%s temp=%s max_tokens=%s\n-- system --\n%s\n-- user --\n%s",
                gemini_model, temperature, max_tokens, system_instruction or "(none)", user_prompt,
            )

        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=temperature,
            max_output_tokens=max_tokens,
            # Both prompts ask for bare JSON
            response_mime_type="application/json",
            thinking_config=types.ThinkingConfig(thinking_budget=0),
        )
        response = genai.Client(api_key=self._api_key).models.generate_content(
            model=gemini_model,
            contents=user_prompt,
            config=config,
        )
        return _openai_shaped(response.text or "")


class GeminiClientAdapter:
    def __init__(self, api_key: str):
        self.chat = SimpleNamespace(completions=_GeminiCompletions(api_key))


def get_llm_client(settings=None):
    """Return the active LLM client based on llm_provider setting."""
    if settings is None:
        settings = get_settings()
    if settings.llm_provider == "gemini":
        return GeminiClientAdapter(api_key=settings.gemini_api_key)
    return OpenAI(api_key=settings.openai_api_key)


@lru_cache
def get_question_store():
    """Document store selected by ``store_backend``."""
    from tenq.services.question_store import MemoryQuestionStore, SupabaseQuestionStore

    settings = get_settings()
    if settings.store_backend == "memory":
        return MemoryQuestionStore()
    return SupabaseQuestionStore(get_supabase_client())


@lru_cache
def get_permission_service():
    from tenq.services.permissions import PermissionCache, PermissionService

    settings = get_settings()
    client = None if settings.store_backend == "memory" else get_supabase_client()
    return PermissionService(
        supabase_client=client,
        admin_emails=settings.admin_emails,
        cache=PermissionCache(ttl_seconds=settings.permission_cache_ttl_seconds),
    )
