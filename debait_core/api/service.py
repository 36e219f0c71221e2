"""编排层服务。

对 HTTP 层提供统一入口：

- ask: 单 agent 多轮对话，按会话续接 agent 自己的上下文。
- discuss: 圆桌讨论的一轮，提示词由讨论记录合成，不续接会话。
- new_conversation / list_sessions / provider_status: 会话与可用性查询。

请求阶段的错误（缺字段、未知 provider、CLI 不存在、provider 不匹配）
都在启动子进程之前抛出；调用失败时会话的轮次和续接 token 保持不变。
"""

import time
from typing import Any, Dict, Iterable, List, Mapping, Optional

from debait_core.config.settings import settings
from debait_core.domain.exceptions import (
    InvalidProviderError,
    MalformedRequestError,
    ProviderUnavailableError,
)
from debait_core.domain.models import (
    MODERATOR_ROLE,
    SUPPORTED_AGENT_KINDS,
    AgentResponse,
    InvokeOptions,
    TranscriptEntry,
    TurnResult,
    is_supported_kind,
)
from debait_core.infrastructure.logging.logger import logger
from debait_core.infrastructure.storage.json_store import JsonSessionStore
from debait_core.prompts import load_system_prompt
from debait_core.prompts.discussion import format_discussion_prompt
from debait_core.providers import create_all_providers
from debait_core.providers.base import ProviderClient
from debait_core.providers.registry import get_provider_config
from debait_core.providers.usage import extract_token_usage
from debait_core.sessions import SessionRegistry


class ProviderOrchestrator:
    def __init__(
        self,
        registry: SessionRegistry,
        providers: Optional[Mapping[str, ProviderClient]] = None,
        cfg=settings,
    ):
        self._registry = registry
        self._settings = cfg
        self._providers: Dict[str, ProviderClient] = dict(providers or create_all_providers(cfg))

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    # ---- 查询 ----

    def provider_status(self) -> Dict[str, Any]:
        providers: Dict[str, Dict[str, Any]] = {}
        for kind in SUPPORTED_AGENT_KINDS:
            client = self._providers.get(kind)
            available = bool(client and client.is_available())
            entry: Dict[str, Any] = {"available": available}
            if not available:
                binary = client.binary if client else kind
                entry["warning"] = f"{get_provider_config(kind).display_name} CLI not found at {binary}"
            providers[kind] = entry
        available_count = sum(1 for p in providers.values() if p["available"])
        return {"providers": providers, "discussionAvailable": available_count >= 2}

    def list_sessions(self) -> Dict[str, Dict[str, Any]]:
        return {
            conv.id: {
                "sessionId": conv.session_id,
                "turns": conv.turns,
                "created": conv.created_at.isoformat(),
                "provider": conv.provider or self._default_provider(),
            }
            for conv in self._registry.list_conversations()
        }

    def new_conversation(self, provider: Optional[str] = None) -> Dict[str, str]:
        kind = provider if is_supported_kind(provider) else self._default_provider()
        conv = self._registry.create(kind)
        self._registry.persist()
        return {"conversationId": conv.id, "provider": kind}

    # ---- 调用 ----

    async def ask(
        self,
        prompt: Optional[str],
        conversation_id: Optional[str] = None,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        system_prompt: Optional[str] = None,
    ) -> TurnResult:
        if not prompt or not isinstance(prompt, str):
            raise MalformedRequestError("Missing 'prompt' field")
        kind = provider or self._default_provider()
        client = self._select_provider(kind)

        conv = self._registry.resolve(conversation_id, kind)
        self._registry.bind_agent_kind(conv.id, kind)

        logger.info(
            "Request received",
            extra={"extra": {
                "prompt": prompt[:80],
                "conversation_id": conv.id,
                "provider": kind,
                "turn": conv.turns + 1,
            }},
        )

        provider_cfg = get_provider_config(kind)
        options = InvokeOptions(continuation_token=conv.session_id)
        if provider_cfg.supports_model:
            options.model = model or None
        if provider_cfg.supports_system_prompt:
            options.system_prompt = system_prompt or load_system_prompt(
                kind, getattr(self._settings, "default_system_prompt", None)
            )

        start = time.monotonic()
        try:
            response = await client.invoke(prompt, options)
        except Exception as e:
            logger.error("Request failed", extra={"extra": {"conversation_id": conv.id, "error": str(e)}})
            raise

        conv = self._registry.record_turn(conv.id, response.continuation_token)
        return self._to_result(kind, response, start, conversation_id=conv.id, turn=conv.turns)

    async def discuss(
        self,
        history: Any,
        provider: Optional[str],
        participants: Optional[Iterable[str]] = None,
    ) -> TurnResult:
        if not isinstance(history, (list, tuple)):
            raise MalformedRequestError("Missing 'history' array")
        transcript = [self._coerce_entry(item) for item in history]
        client = self._select_provider(provider)

        participant_list: List[str] = list(participants or [])
        prompt = format_discussion_prompt(transcript, provider, participant_list)
        logger.info(
            "Discussion request",
            extra={"extra": {"provider": provider, "history_length": len(transcript), "participants": participant_list}},
        )

        start = time.monotonic()
        try:
            response = await client.invoke(prompt, InvokeOptions())
        except Exception as e:
            logger.error("Discussion request failed", extra={"extra": {"provider": provider, "error": str(e)}})
            raise
        return self._to_result(provider, response, start)

    # ---- 辅助方法 ----

    def _default_provider(self) -> str:
        name = getattr(self._settings, "default_provider", "claude")
        return name if is_supported_kind(name) else "claude"

    def _select_provider(self, kind: Optional[str]) -> ProviderClient:
        if not is_supported_kind(kind):
            raise InvalidProviderError(
                f"Invalid provider. Must be one of: {', '.join(SUPPORTED_AGENT_KINDS)}",
                provider=kind,
            )
        client = self._providers.get(kind)
        if client is None or not client.is_available():
            binary = client.binary if client else kind
            raise ProviderUnavailableError(
                f"{get_provider_config(kind).display_name} CLI not found at {binary}",
                provider=kind,
            )
        return client

    @staticmethod
    def _coerce_entry(item: Any) -> TranscriptEntry:
        if isinstance(item, TranscriptEntry):
            return item
        if isinstance(item, Mapping):
            return transcript_entry_from_wire(item)
        raise MalformedRequestError("History entries must be objects with 'role' and 'content'")

    @staticmethod
    def _to_result(
        kind: str,
        response: AgentResponse,
        start: float,
        conversation_id: Optional[str] = None,
        turn: Optional[int] = None,
    ) -> TurnResult:
        duration_ms = response.duration_ms
        if duration_ms is None:
            duration_ms = int((time.monotonic() - start) * 1000)
        return TurnResult(
            result=response.result_text,
            provider=kind,
            duration_ms=duration_ms,
            tokens=extract_token_usage(kind, response.raw_usage),
            conversation_id=conversation_id,
            turn=turn,
            aborted=response.aborted,
        )


_service: Optional[ProviderOrchestrator] = None


def get_default_service() -> ProviderOrchestrator:
    """获取默认的编排服务实例（单例），会话从 sessions_file 加载。"""
    global _service
    if _service is None:
        registry = SessionRegistry(JsonSessionStore(settings.sessions_file))
        _service = ProviderOrchestrator(registry=registry, cfg=settings)
    return _service


def transcript_entry_from_wire(msg: Mapping[str, Any]) -> TranscriptEntry:
    """把前端的一条消息转成 TranscriptEntry。

    支持两种形状：
    - {"role": "moderator" | "<agent>", "content": ...}
    - {"role": "user" | "assistant", "provider": "<agent>", "content": ...}
    """

    role = str(msg.get("role") or "")
    if role == "user":
        role = MODERATOR_ROLE
    elif role == "assistant":
        role = str(msg.get("provider") or "")
    return TranscriptEntry(role=role, content=str(msg.get("content") or ""))
