"""FastAPI 绑定：把 ChatService 暴露为 HTTP 接口。"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from assistant_core.api.service import ChatService, get_default_service
from assistant_core.domain.exceptions import BusinessError
from assistant_core.infrastructure.logging.logger import logger

GREETING = "Hi, my name is Clippy!"


class MessageIn(BaseModel):
    message: str


def create_app(service: Optional[ChatService] = None) -> FastAPI:
    app = FastAPI(title="assistant-core")
    # 延迟到首个请求再构建默认服务，测试可以直接注入
    holder = {"service": service}

    def _service() -> ChatService:
        if holder["service"] is None:
            holder["service"] = get_default_service()
        return holder["service"]

    @app.exception_handler(BusinessError)
    async def _business_error(request: Request, exc: BusinessError) -> JSONResponse:
        level = "error" if exc.http_status >= 500 else "warning"
        getattr(logger, level)(
            "Request failed",
            extra={"extra": {"path": request.url.path, "code": exc.code, "error": exc.message}},
        )
        return JSONResponse(status_code=exc.http_status, content={"code": exc.code, "message": exc.message})

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", extra={"extra": {"path": request.url.path}})
        return JSONResponse(status_code=500, content={"code": "INTERNAL_ERROR", "message": "internal server error"})

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return GREETING

    @app.post("/conversations")
    async def start_conversation(body: MessageIn):
        return await _service().start_conversation(body.message)

    @app.get("/conversations")
    async def list_conversations():
        return await _service().list_conversations()

    @app.get("/conversations/{conversation_id}")
    async def describe_conversation(conversation_id: str):
        return await _service().describe_conversation(conversation_id)

    @app.post("/conversations/{conversation_id}/messages")
    async def continue_conversation(conversation_id: str, body: MessageIn):
        return await _service().continue_conversation(conversation_id, body.message)

    return app
