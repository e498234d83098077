"""
Bounded remote calls.

Every outbound API call made by the platform goes through BoundedRemoteCall:
- One request per call, raced against a deadline
- Typed outcome (Success | Failure) instead of raised transport errors
- Response validation delegated to a ResponseNormalizer
- Trace-event side channel, never affecting results
"""

from agent.remote.bounded_call import (
    BoundedRemoteCall,
    PassthroughNormalizer,
    ResponseNormalizer,
)
from agent.remote.encoding import encode_outcome
from agent.remote.types import (
    Failure,
    FailureKind,
    Outcome,
    RequestDescriptor,
    Success,
)
from agent.remote.user_agents import fixed_user_agent, random_user_agent
from agent.remote.weather import (
    WeatherClient,
    WeatherNormalizer,
    WeatherReport,
    encode_weather_outcome,
)
from agent.remote.wordpress import (
    WordPressClient,
    WordPressNormalizer,
    WordPressPost,
    WordPressPostArgs,
)

__all__ = [
    "BoundedRemoteCall",
    "PassthroughNormalizer",
    "ResponseNormalizer",
    "encode_outcome",
    "Failure",
    "FailureKind",
    "Outcome",
    "RequestDescriptor",
    "Success",
    "fixed_user_agent",
    "random_user_agent",
    "WeatherClient",
    "WeatherNormalizer",
    "WeatherReport",
    "encode_weather_outcome",
    "WordPressClient",
    "WordPressNormalizer",
    "WordPressPost",
    "WordPressPostArgs",
]
