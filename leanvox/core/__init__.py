from .async_client import AsyncClient
from .exceptions import ErrorKind
from .exceptions import LeanvoxError
from .exceptions import StreamingFormatError
from .exceptions import classify_error
from .executor import RequestExecutor
from .logging import setup_logging
from .models import AccountBalance
from .models import AccountUsage
from .models import ConnectionConfig
from .models import DialogueLine
from .models import FileExtractResult
from .models import FileField
from .models import GenerateOptions
from .models import GenerateResult
from .models import Generation
from .models import GenerationList
from .models import Job
from .models import JobStatus
from .models import RequestSpec
from .models import Voice
from .models import VoiceDesign
from .models import VoiceList
from .poller import AsyncJobPoller
from .retry import RetryPolicy
from .transport import Success
from .transport import Transport
from .transport import TransportFailure

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
