"""
WordPress post publishing over the REST API (wp-json/wp/v2/posts).

Authentication uses an application password (HTTP Basic). The request goes
through BoundedRemoteCall, so it shares the same deadline and failure taxonomy
as every other outbound call.

WordPress error bodies look like:
    {"code": "rest_cannot_create", "message": "...", "data": {"status": 401}}
"""

import base64
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from agent.remote.bounded_call import BoundedRemoteCall, ResponseNormalizer
from agent.remote.types import Failure, FailureKind, Outcome, RequestDescriptor, Success
from agent.remote.user_agents import HeaderValueProvider, random_user_agent
from agent.tracing.tracer import TraceMetadata, Tracer

DEFAULT_WORDPRESS_TIMEOUT_MS = 30000


class WordPressPostArgs(BaseModel):
    """Post input."""

    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    status: Literal["publish", "draft", "pending", "private"] = "publish"


class WordPressPost(BaseModel):
    """Created post, as reported back by WordPress."""

    id: int
    link: str = ""
    status: str = ""


class WordPressNormalizer(ResponseNormalizer):
    """A body with an "id" is a created post; a "code" body is a rejection."""

    def normalize(self, body: Any, descriptor: RequestDescriptor) -> Outcome:
        if not isinstance(body, dict):
            return Failure(
                reason=FailureKind.MALFORMED_RESPONSE,
                detail=f"expected a JSON object, got {type(body).__name__}",
            )

        if "id" not in body:
            if "code" in body:
                return Failure(
                    reason=FailureKind.UPSTREAM_REJECTED,
                    detail=f"{body.get('code')}: {body.get('message', '')}".strip(),
                )
            return Failure(
                reason=FailureKind.MALFORMED_RESPONSE,
                detail="response has neither id nor error code",
            )

        return Success(payload=WordPressPost.model_validate(body))


class WordPressClient:
    """Publishes posts to one WordPress site."""

    def __init__(
        self,
        site_url: str,
        username: str,
        app_password: str,
        timeout_ms: float = DEFAULT_WORDPRESS_TIMEOUT_MS,
        user_agent: HeaderValueProvider = random_user_agent,
        remote_call: Optional[BoundedRemoteCall] = None,
        tracer: Optional[Tracer] = None,
        trace_metadata: Optional[TraceMetadata] = None,
    ):
        self.site_url = (site_url or "").rstrip("/")
        self.timeout_ms = timeout_ms
        self._username = username or ""
        self._app_password = app_password or ""
        self._user_agent = user_agent
        self._call = remote_call or BoundedRemoteCall(
            normalizer=WordPressNormalizer(),
            tracer=tracer,
            trace_metadata=trace_metadata,
        )

    def is_configured(self) -> bool:
        return bool(self.site_url and self._username and self._app_password)

    def _build_headers(self) -> dict:
        """Basic auth header. Credentials never go in the URL or the body."""
        token = base64.b64encode(
            f"{self._username}:{self._app_password}".encode("utf-8")
        ).decode("ascii")
        return {
            "Authorization": f"Basic {token}",
            "Content-Type": "application/json",
            "User-Agent": self._user_agent(),
        }

    def build_descriptor(self, args: WordPressPostArgs) -> RequestDescriptor:
        locator = f"{self.site_url}/wp-json/wp/v2/posts" if self.site_url else ""
        return RequestDescriptor(
            locator=locator,
            headers=self._build_headers(),
            deadline_ms=self.timeout_ms,
            resource_id=args.title,
            method="POST",
            json_body=args.model_dump(),
        )

    async def publish(self, args: WordPressPostArgs) -> Outcome:
        return await self._call.execute(self.build_descriptor(args))

    def publish_sync(self, args: WordPressPostArgs) -> Outcome:
        return self._call.execute_sync(self.build_descriptor(args))
