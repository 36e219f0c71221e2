"""会话注册表。

进程内唯一的会话状态容器，所有读写都经过 resolve / bind_agent_kind / record_turn。

- 启动时从 SessionStore 加载一次。
- 每次成功调用后把完整快照交给后台单线程写盘，写入失败只记日志，不影响请求。
- 单事件循环内使用，不加锁；同一会话的并发轮次以最后一次写入为准。
"""

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from debait_core.domain.conversation import Conversation, SessionStore
from debait_core.domain.exceptions import BusinessError, MalformedRequestError, ProviderMismatchError
from debait_core.infrastructure.logging.logger import logger


def new_conversation_id() -> str:
    return f"conv-{uuid4().hex}"


class SessionRegistry:
    def __init__(self, store: Optional[SessionStore] = None):
        self._store = store
        self._conversations: Dict[str, Conversation] = {}
        self._executor: Optional[ThreadPoolExecutor] = None
        if store is not None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="session-persist")
            self._load()

    def _load(self) -> None:
        try:
            self._conversations = dict(self._store.load())
        except BusinessError as e:
            logger.error("Failed to load sessions", extra={"extra": {"error": e.message}})
            return
        logger.info(f"Loaded {len(self._conversations)} session(s) from disk")

    # ---- 查询 ----

    def get(self, conversation_id: str) -> Optional[Conversation]:
        return self._conversations.get(conversation_id)

    def list_conversations(self) -> List[Conversation]:
        return list(self._conversations.values())

    def snapshot(self) -> Dict[str, Conversation]:
        """返回所有会话的拷贝，供写盘线程使用。"""

        return {cid: replace(conv) for cid, conv in self._conversations.items()}

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._conversations

    def __len__(self) -> int:
        return len(self._conversations)

    # ---- 变更 ----

    def create(self, provider: Optional[str] = None) -> Conversation:
        conv = Conversation(
            id=new_conversation_id(),
            session_id=None,
            turns=0,
            created_at=datetime.now(timezone.utc),
            provider=provider,
        )
        self._conversations[conv.id] = conv
        logger.info("New conversation created", extra={"extra": {"conversation_id": conv.id, "provider": provider}})
        return conv

    def resolve(self, conversation_id: Optional[str] = None, provider: Optional[str] = None) -> Conversation:
        """返回已有会话；id 为空或未知时新建一个（使用新生成的 id）。"""

        if conversation_id:
            conv = self._conversations.get(conversation_id)
            if conv is not None:
                return conv
            logger.info("Unknown conversation id, starting a new one", extra={"extra": {"requested": conversation_id}})
        return self.create(provider)

    def bind_agent_kind(self, conversation_id: str, requested: str) -> None:
        """把会话绑定到 requested。

        已经有成功轮次且绑定的类型不同时抛 ProviderMismatchError，状态保持不变。
        """

        conv = self._require(conversation_id)
        if conv.turns > 0 and conv.provider and conv.provider != requested:
            raise ProviderMismatchError(
                f"Cannot switch provider mid-conversation. This conversation uses {conv.provider}.",
                conversation_id=conversation_id,
                provider=conv.provider,
                requested=requested,
            )
        conv.provider = requested

    def record_turn(self, conversation_id: str, continuation_token: Optional[str] = None) -> Conversation:
        conv = self._require(conversation_id)
        if continuation_token:
            conv.session_id = continuation_token
        conv.turns += 1
        self.persist()
        return conv

    # ---- 持久化 ----

    def persist(self) -> Optional[Future]:
        """提交一次后台写盘，不等待结果。"""

        if self._store is None or self._executor is None:
            return None
        future = self._executor.submit(self._store.save, self.snapshot())
        future.add_done_callback(self._on_persisted)
        return future

    @staticmethod
    def _on_persisted(future: Future) -> None:
        exc = future.exception()
        if exc is None:
            return
        message = exc.message if isinstance(exc, BusinessError) else str(exc)
        logger.error("Failed to save sessions", extra={"extra": {"error": message}})

    def close(self) -> None:
        """等待已提交的写盘完成。"""

        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _require(self, conversation_id: str) -> Conversation:
        conv = self._conversations.get(conversation_id)
        if conv is None:
            raise MalformedRequestError(f"Unknown conversation: {conversation_id}", conversation_id=conversation_id)
        return conv
