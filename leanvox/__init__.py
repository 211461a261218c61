__version__ = "0.1.0"

from .core import AsyncClient
from .core import ErrorKind
from .core import LeanvoxError
from .core import StreamingFormatError
from .core import classify_error
from .core import RequestExecutor
from .core import setup_logging
from .core import AccountBalance
from .core import AccountUsage
from .core import ConnectionConfig
from .core import DialogueLine
from .core import FileExtractResult
from .core import FileField
from .core import GenerateOptions
from .core import GenerateResult
from .core import Generation
from .core import GenerationList
from .core import Job
from .core import JobStatus
from .core import RequestSpec
from .core import Voice
from .core import VoiceDesign
from .core import VoiceList
from .core import AsyncJobPoller
from .core import RetryPolicy
from .core import Success
from .core import Transport
from .core import TransportFailure

__all__ = [
    "AsyncClient",
    "AsyncJobPoller",
    "RequestExecutor",
    "RetryPolicy",
    "Transport",
    "Success",
    "TransportFailure",
    "ErrorKind",
    "LeanvoxError",
    "StreamingFormatError",
    "classify_error",
    "ConnectionConfig",
    "RequestSpec",
    "FileField",
    "GenerateOptions",
    "GenerateResult",
    "DialogueLine",
    "Job",
    "JobStatus",
    "Voice",
    "VoiceList",
    "VoiceDesign",
    "Generation",
    "GenerationList",
    "FileExtractResult",
    "AccountBalance",
    "AccountUsage",
    "setup_logging",
]
