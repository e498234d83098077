"""
Post to WordPress Tool.

Publishes a post through WordPressClient (BoundedRemoteCall).
Missing site credentials fail fast without any network I/O.
"""

import time
from typing import Any, Dict, Optional

from pydantic import ValidationError

from agent.remote.encoding import describe_failure
from agent.remote.types import Failure
from agent.remote.wordpress import WordPressClient, WordPressPost, WordPressPostArgs
from agent.tools.base import ToolInputSchema, ToolInterface, ToolResult


class PostToWordPressTool(ToolInterface):
    """
    WordPress publishing tool.

    Tool name: "post_to_wordpress"
    """

    name = "post_to_wordpress"
    description = (
        "Publish a post to the configured WordPress site. "
        'Input must be a JSON object: {"title": "...", "content": "...", '
        '"status": "publish" | "draft"}. Returns the post id and link.'
    )
    input_schema = ToolInputSchema(
        properties={
            "title": {"type": "string", "description": "Post title"},
            "content": {"type": "string", "description": "Post body (HTML or plain text)"},
            "status": {
                "type": "string",
                "description": "publish | draft | pending | private",
                "default": "publish",
            },
        },
        required=["title", "content"],
    )

    def __init__(self, client: WordPressClient):
        self._client = client

    def execute(self, input_dict: Dict[str, Any]) -> ToolResult:
        start = time.time()

        if not self._client.is_configured():
            return ToolResult(
                success=False,
                error="WordPress is not configured (WORDPRESS_URL / WORDPRESS_USERNAME / WORDPRESS_APP_PASSWORD)",
            )

        if not self._validate_input(input_dict):
            return ToolResult(
                success=False,
                error="Missing required fields: title, content",
            )

        try:
            args = WordPressPostArgs(**{
                k: v for k, v in input_dict.items() if k in ("title", "content", "status")
            })
        except ValidationError as e:
            return ToolResult(success=False, error=f"Invalid post arguments: {e}")

        outcome = self._client.publish_sync(args)
        elapsed_ms = int((time.time() - start) * 1000)

        if isinstance(outcome, Failure):
            return ToolResult(
                success=False,
                error=describe_failure(outcome),
                data={
                    "failure_reason": outcome.reason.value,
                    "retryable": outcome.retryable,
                },
                execution_time_ms=elapsed_ms,
            )

        post: WordPressPost = outcome.payload
        return ToolResult(
            success=True,
            data=post.model_dump(),
            execution_time_ms=elapsed_ms,
        )


def build_wordpress_tool(
    site_url: Optional[str],
    username: Optional[str],
    app_password: Optional[str],
    timeout_ms: float,
    **client_kwargs: Any,
) -> PostToWordPressTool:
    return PostToWordPressTool(WordPressClient(
        site_url=site_url or "",
        username=username or "",
        app_password=app_password or "",
        timeout_ms=timeout_ms,
        **client_kwargs,
    ))
