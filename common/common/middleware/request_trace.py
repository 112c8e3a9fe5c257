import json
import logging
import time
import uuid
from urllib.parse import parse_qs

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response


REQUEST_ID_HEADER = "X-Request-Id"
SPAN_ID_HEADER = "X-Span-Id"

# 노이즈를 줄이기 위해 로그에서 제외할 엔드포인트 경로 목록.
# 세션 상태 조회는 플레이어 화면이 매초 폴링하므로 함께 제외한다.
IGNORED_LOG_PATHS: set[str] = {"/health"}
IGNORED_LOG_SUFFIXES: tuple[str, ...] = ("/status",)

# 요청 바디를 로그에 남길 때 마스킹할 필드
REDACTED_BODY_FIELDS: frozenset[str] = frozenset({"password"})
MAX_LOGGED_BODY_LENGTH = 1024


def redact_body(text: str) -> str:
    """JSON 바디라면 민감 필드를 *** 로 치환한다. JSON 이 아니면 그대로 둔다."""

    try:
        payload = json.loads(text)
    except ValueError:
        return text
    if not isinstance(payload, dict):
        return text
    changed = False
    for key in payload:
        if key in REDACTED_BODY_FIELDS:
            payload[key] = "***"
            changed = True
    if not changed:
        return text
    return json.dumps(payload, ensure_ascii=False)


class RequestTraceMiddleware(BaseHTTPMiddleware):
    """공통 Request/Span ID 로그 미들웨어.

    - X-Request-Id, X-Span-Id 를 읽고, 없으면 request_id 만 새로 생성한다.
    - request.state 에 request_id, span_id 를 저장하고 응답 헤더에도 싣는다.
    - 요청 완료/실패 로그를 한 줄씩 남긴다 (관리자 비밀번호는 마스킹).
    """

    def __init__(self, app, logger: logging.Logger | None = None) -> None:  # type: ignore[override]
        super().__init__(app)
        self._logger = logger or logging.getLogger("request_trace")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        span_id = request.headers.get(SPAN_ID_HEADER) or "0"
        request.state.request_id = request_id
        request.state.span_id = span_id

        body: str | None = None
        if request.method in {"POST", "PUT", "PATCH", "DELETE"}:
            raw = await request.body()
            if raw:
                text = raw.decode("utf-8", errors="replace")
                body = redact_body(text)[:MAX_LOGGED_BODY_LENGTH]

        should_log = self._should_log_request(request)
        start = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            if should_log:
                self._logger.exception(
                    "request failed",
                    extra=self._build_log_extra(
                        request,
                        request_id,
                        span_id,
                        body=body,
                        duration=time.monotonic() - start,
                    ),
                )
            raise

        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        response.headers.setdefault(SPAN_ID_HEADER, span_id)

        if should_log:
            self._logger.info(
                "completed request",
                extra=self._build_log_extra(
                    request,
                    request_id,
                    span_id,
                    body=body,
                    status=response.status_code,
                    duration=time.monotonic() - start,
                ),
            )

        return response

    def _should_log_request(self, request: Request) -> bool:
        path = request.url.path
        if path in IGNORED_LOG_PATHS:
            return False
        return not (request.method == "GET" and path.endswith(IGNORED_LOG_SUFFIXES))

    def _build_log_extra(
        self,
        request: Request,
        request_id: str,
        span_id: str,
        body: str | None = None,
        status: int | None = None,
        duration: float | None = None,
    ) -> dict[str, object]:
        extra: dict[str, object] = {
            "request_id": request_id,
            "span_id": span_id,
            "method": request.method,
            "path": request.url.path,
        }

        query = request.url.query
        if query:
            parsed = parse_qs(query, keep_blank_values=True)
            extra["query_params"] = {
                key: values[0] if len(values) == 1 else values
                for key, values in parsed.items()
            }

        if body:
            extra["body"] = body
        if status is not None:
            extra["status"] = status
        if duration is not None:
            extra["duration"] = f"{duration * 1000:.3f}ms"

        return extra
