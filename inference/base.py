from abc import ABC, abstractmethod

from .types import ModelRequest, ModelResponse


class ModelBackend(ABC):
    """
    Boundary between the agent graph and a language model.

    generate() reports every problem through ModelResponse.status and
    error_type; the graph routes on those instead of catching exceptions.
    """

    name: str = "unknown"

    @abstractmethod
    def generate(self, request: ModelRequest) -> ModelResponse:
        raise NotImplementedError
