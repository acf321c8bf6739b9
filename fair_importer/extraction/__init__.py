from .client import ModelInvocationError, WorkersAiClient
from .extractor import AiExtractor

__all__ = ["AiExtractor", "ModelInvocationError", "WorkersAiClient"]
