"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uv run uvicorn src.app.main:app --reload
- 프로덕션: uv run uvicorn src.app.main:app
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from src.app.routes import analyze, generate
from src.core.config import DeliveryOptions, RenderSettings, load_config
from src.delivery.dispatcher import DeliveryDispatcher
from src.render.convert import create_converter
from src.render.pipeline import RenderPipeline

# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: 설정 로드, 파이프라인/전송기 구성
    자격증명은 이메일 요청 시점에 환경 변수에서 읽는다.
    """
    config = load_config()
    settings = RenderSettings.from_config(config)

    app.state.config = config
    app.state.render_settings = settings
    app.state.pipeline = RenderPipeline(
        create_converter(
            settings.output_format,
            binary=settings.converter_binary,
            timeout=settings.converter_timeout_seconds,
        ),
        settings,
    )
    app.state.dispatcher = DeliveryDispatcher(DeliveryOptions.from_config(config))

    yield


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="Certifier",
    description="DOCX 템플릿 + CSV 데이터 → 문서 일괄 생성 (ZIP 다운로드 / 링크 메일)",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# Routes
# =============================================================================

app.include_router(analyze.api_router, prefix="/api", tags=["Analyze API"])
app.include_router(generate.api_router, prefix="/api/generate", tags=["Generate API"])


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/")
async def root() -> dict[str, Any]:
    """서비스 안내."""
    return {
        "message": "Certifier",
        "endpoints": {
            "analyze": "/api/analyze",
            "dataset": "/api/dataset",
            "generate": "/api/generate",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    """헬스 체크."""
    return {"status": "ok"}


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
