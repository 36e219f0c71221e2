"""HTTP 分发层（FastAPI）。

路由只做参数搬运，业务校验与错误分类都在 ProviderOrchestrator 中完成：

  POST /ask        单 agent 对话（按会话续接）
  POST /discuss    圆桌讨论的一轮
  POST /new        新建会话
  GET  /sessions   会话列表
  GET  /providers  CLI 可用性
  GET  /logs       最近 50 条日志

BusinessError 统一转换为 {"error", "code"}，状态码取异常上的 http_status。
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from debait_core.api.service import ProviderOrchestrator, get_default_service
from debait_core.config.settings import settings
from debait_core.domain.exceptions import BusinessError
from debait_core.infrastructure.logging.logger import logger, read_recent_logs

RECENT_LOG_LIMIT = 50


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # 等待未完成的会话写盘
    app.state.service.registry.close()


class AskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    prompt: Optional[str] = None
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    provider: Optional[str] = None
    model: Optional[str] = None
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")


class DiscussRequest(BaseModel):
    history: Optional[List[Dict[str, Any]]] = None
    provider: Optional[str] = None
    participants: List[str] = Field(default_factory=list)


class NewConversationRequest(BaseModel):
    provider: Optional[str] = None


def create_app(service: Optional[ProviderOrchestrator] = None) -> FastAPI:
    """创建 FastAPI 应用；service 为空时使用默认单例。"""

    application = FastAPI(title="debAIt", version="0.1.0", lifespan=_lifespan)
    application.state.service = service or get_default_service()

    application.add_middleware(
        CORSMiddleware,
        allow_origins=list(getattr(settings, "cors_origins", ["*"])),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @application.exception_handler(BusinessError)
    async def _business_error(request: Request, exc: BusinessError) -> JSONResponse:
        return JSONResponse(status_code=exc.http_status, content={"error": exc.message, "code": exc.code})

    @application.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Invalid request body", extra={"extra": {"path": request.url.path, "errors": str(exc.errors())}})
        return JSONResponse(status_code=400, content={"error": "Invalid JSON body", "code": "MALFORMED_REQUEST"})

    @application.post("/ask")
    async def ask(body: AskRequest, request: Request) -> Dict[str, Any]:
        svc: ProviderOrchestrator = request.app.state.service
        result = await svc.ask(
            prompt=body.prompt,
            conversation_id=body.conversation_id,
            provider=body.provider,
            model=body.model,
            system_prompt=body.system_prompt,
        )
        return result.to_dict()

    @application.post("/discuss")
    async def discuss(body: DiscussRequest, request: Request) -> Dict[str, Any]:
        svc: ProviderOrchestrator = request.app.state.service
        result = await svc.discuss(history=body.history, provider=body.provider, participants=body.participants)
        return result.to_dict()

    @application.post("/new")
    async def new_conversation(request: Request, body: Optional[NewConversationRequest] = None) -> Dict[str, str]:
        svc: ProviderOrchestrator = request.app.state.service
        return svc.new_conversation(body.provider if body else None)

    @application.get("/sessions")
    async def sessions(request: Request) -> Dict[str, Any]:
        svc: ProviderOrchestrator = request.app.state.service
        return {"sessions": svc.list_sessions()}

    @application.get("/providers")
    async def providers(request: Request) -> Dict[str, Any]:
        svc: ProviderOrchestrator = request.app.state.service
        return svc.provider_status()

    @application.get("/logs")
    async def logs() -> Dict[str, Any]:
        return {"logs": read_recent_logs(RECENT_LOG_LIMIT)}

    return application
