import pytest
from _utils import VALID_KEY
from _utils import FakeTransport
from _utils import serve
from _utils import success
from aiohttp import web

from leanvox import AsyncClient
from leanvox import ConnectionConfig
from leanvox import DialogueLine
from leanvox import ErrorKind
from leanvox import LeanvoxError
from leanvox import RequestExecutor
from leanvox import RetryPolicy
from leanvox import StreamingFormatError
from leanvox.core.resources import VoicesResource

GENERATED = {
    "audio_url": "https://cdn.leanvox.com/audio.mp3",
    "model": "standard",
    "voice": "af_heart",
    "characters": 11,
    "cost_cents": 1.5,
}


class FakeApi:
    """A minimal Leanvox API recording what it receives."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, str, dict, object]] = []
        self.job_statuses = ["processing", "completed"]
        self.flaky = 1
        self.app = web.Application()
        routes = [
            web.post("/v1/tts/generate", self.generate),
            web.post("/v1/tts/stream", self.stream),
            web.post("/v1/tts/dialogue", self.generate),
            web.post("/v1/tts/generate-async", self.generate_async),
            web.get("/v1/jobs/{job_id}", self.get_job),
            web.get("/v1/jobs", self.list_jobs),
            web.get("/v1/voices", self.voices),
            web.post("/v1/voices/clone", self.clone),
            web.delete("/v1/voices/{voice_id}", self.no_content),
            web.post("/v1/files/extract-text", self.extract_text),
            web.get("/v1/generations", self.generations),
            web.get("/v1/account/balance", self.balance),
            web.get("/v1/account/usage", self.usage),
            web.get("/v1/flaky", self.flaky_endpoint),
            web.get("/audio.mp3", self.audio),
        ]
        self.app.add_routes(routes)

    async def _record(self, request: web.Request) -> None:
        body = await request.json() if request.content_type == "application/json" and request.can_read_body else None
        self.requests.append((request.method, request.path, dict(request.query), body))

    async def generate(self, request: web.Request) -> web.Response:
        await self._record(request)
        return web.json_response(GENERATED)

    async def stream(self, request: web.Request) -> web.StreamResponse:
        await self._record(request)
        response = web.StreamResponse(headers={"Content-Type": "audio/mpeg"})
        await response.prepare(request)
        await response.write(b"chunk-1")
        await response.write(b"chunk-2")
        await response.write_eof()
        return response

    async def generate_async(self, request: web.Request) -> web.Response:
        await self._record(request)
        return web.json_response({"id": "job-1", "status": "pending", "estimated_seconds": 3})

    async def get_job(self, request: web.Request) -> web.Response:
        await self._record(request)
        status = self.job_statuses.pop(0)
        job = {"id": request.match_info["job_id"], "status": status}
        if status == "completed":
            job["audio_url"] = "https://cdn.leanvox.com/long.mp3"
        if status == "failed":
            job["error"] = "bad text"
        return web.json_response(job)

    async def list_jobs(self, request: web.Request) -> web.Response:
        return web.json_response([{"id": "job-1", "status": "completed", "audio_url": "u"}])

    async def voices(self, request: web.Request) -> web.Response:
        await self._record(request)
        return web.json_response(
            {
                "standard_voices": [{"voice_id": "af_heart", "name": "Heart"}],
                "pro_voices": [{"voice_id": "pro_1", "name": "Pro", "unlock_cost_cents": 100}],
            }
        )

    async def clone(self, request: web.Request) -> web.Response:
        form = await request.post()
        self.requests.append((request.method, request.path, {}, {"name": form["name"], "size": len(form["audio"].file.read())}))
        return web.json_response({"voice_id": "cloned_1", "name": form["name"], "status": "locked"})

    async def no_content(self, request: web.Request) -> web.Response:
        await self._record(request)
        return web.Response(status=204)

    async def extract_text(self, request: web.Request) -> web.Response:
        form = await request.post()
        upload = form["file"]
        text = upload.file.read().decode()
        return web.json_response({"text": text, "filename": upload.filename, "char_count": len(text), "truncated": False})

    async def generations(self, request: web.Request) -> web.Response:
        await self._record(request)
        return web.json_response({"generations": [{"id": "g1", "audio_url": "u", "cost_cents": 2}], "total": 1})

    async def balance(self, request: web.Request) -> web.Response:
        return web.json_response({"balance_cents": 500, "total_spent_cents": 1200})

    async def usage(self, request: web.Request) -> web.Response:
        await self._record(request)
        return web.json_response({"entries": [{"day": "2026-10-01", "characters": 10}]})

    async def flaky_endpoint(self, request: web.Request) -> web.Response:
        if self.flaky:
            self.flaky -= 1
            return web.json_response({"error": {"message": "try again"}}, status=503)
        return web.json_response({"ok": True})

    async def audio(self, request: web.Request) -> web.Response:
        return web.Response(body=b"ID3-audio", content_type="audio/mpeg")


def make_client(url: str, **kwargs) -> AsyncClient:
    kwargs.setdefault("retry_policy", RetryPolicy(max_retries=2, backoff_schedule=(0.0,)))
    return AsyncClient(api_key=VALID_KEY, url=url, **kwargs)


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture(autouse=True)
def no_ambient_key(monkeypatch, tmp_path):
    monkeypatch.delenv("LEANVOX_API_KEY", raising=False)
    monkeypatch.delenv("LEANVOX_BASE_URL", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))


def test_requires_api_key():
    with pytest.raises(LeanvoxError) as exc_info:
        AsyncClient()

    assert exc_info.value.kind is ErrorKind.AUTHENTICATION


def test_rejects_bad_key_prefix():
    with pytest.raises(LeanvoxError) as exc_info:
        AsyncClient(api_key="bad_key")

    assert exc_info.value.kind is ErrorKind.AUTHENTICATION


def test_reads_configuration_from_environment(monkeypatch):
    monkeypatch.setenv("LEANVOX_API_KEY", VALID_KEY)
    monkeypatch.setenv("LEANVOX_BASE_URL", "https://staging.leanvox.test")

    client = AsyncClient(timeout=10.0, max_retries=4)

    assert client.conn_config == ConnectionConfig(
        url="https://staging.leanvox.test", api_key=VALID_KEY, timeout=10.0, max_retries=4
    )
    assert client.voices is not None
    assert client.files is not None
    assert client.generations is not None
    assert client.account is not None


def test_conn_config_overrides_arguments():
    config = ConnectionConfig(url="https://example.test", api_key=VALID_KEY, max_retries=0)

    client = AsyncClient(api_key="lv_live_other", conn_config=config)

    assert client.conn_config is config


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kwargs,message",
    [
        ({"text": ""}, "text is required"),
        ({"text": "x" * 10_001}, "10,000"),
        ({"text": "hi", "model": "ultra"}, "model must be"),
        ({"text": "hi", "speed": 0.1}, "speed"),
        ({"text": "hi", "speed": 3.0}, "speed"),
        ({"text": "hi", "exaggeration": 0.8}, "exaggeration"),
        ({"text": "hi", "format": "ogg"}, "format"),
        ({"text": "hi", "model": "max"}, "voice_instructions is required"),
        ({"text": "hi", "model": "max", "voice_instructions": "x" * 301}, "300 characters"),
        ({"text": "hi", "model": "max", "voice_instructions": "calm", "voice": "af"}, "mutually exclusive"),
        ({"text": "hi", "voice_instructions": "calm"}, 'only supported with model "max"'),
    ],
)
async def test_generate_validation(kwargs, message):
    async with make_client("http://127.0.0.1:1") as client:
        with pytest.raises(LeanvoxError) as exc_info:
            await client.generate(**kwargs)

    assert exc_info.value.kind is ErrorKind.INVALID_REQUEST
    assert message in exc_info.value.message


@pytest.mark.asyncio
async def test_generate(api):
    async with serve(api.app) as url:
        async with make_client(url) as client:
            result = await client.generate(text="Hello world", voice="af_heart", speed=1.2, format="mp3")

    assert result.audio_url == GENERATED["audio_url"]
    assert result.cost_cents == 1.5
    assert api.requests == [
        (
            "POST",
            "/v1/tts/generate",
            {},
            {"text": "Hello world", "model": "standard", "voice": "af_heart", "format": "mp3", "speed": 1.2},
        )
    ]


@pytest.mark.asyncio
async def test_generate_max_model_sends_voice_instructions(api):
    async with serve(api.app) as url:
        async with make_client(url) as client:
            await client.generate(text="Hi", model="max", voice_instructions="A warm narrator")

    assert api.requests[0][3] == {"text": "Hi", "model": "max", "voice_instructions": "A warm narrator"}


@pytest.mark.asyncio
async def test_long_text_switches_to_async_job(api):
    text = "word " * 20

    async with serve(api.app) as url:
        async with make_client(url, auto_async_threshold=50, poll_interval=0.01) as client:
            result = await client.generate(text=text, voice="af_heart")

    assert result.audio_url == "https://cdn.leanvox.com/long.mp3"
    assert result.characters == len(text)
    assert result.cost_cents == 0
    assert [r[:2] for r in api.requests] == [
        ("POST", "/v1/tts/generate-async"),
        ("GET", "/v1/jobs/job-1"),
        ("GET", "/v1/jobs/job-1"),
    ]


@pytest.mark.asyncio
async def test_failed_async_job_raises(api):
    api.job_statuses = ["failed"]

    async with serve(api.app) as url:
        async with make_client(url, auto_async_threshold=5, poll_interval=0.01) as client:
            with pytest.raises(LeanvoxError) as exc_info:
                await client.generate(text="long enough")

    assert exc_info.value.kind is ErrorKind.INVALID_REQUEST
    assert "bad text" in exc_info.value.message


@pytest.mark.asyncio
async def test_generate_async_and_jobs(api):
    async with serve(api.app) as url:
        async with make_client(url, poll_interval=0.01) as client:
            job = await client.generate_async(text="Hello", webhook_url="https://hooks.test/done")
            done = await client.wait_for_job(job.id)
            jobs = await client.list_jobs()

    assert job.id == "job-1"
    assert job.status == "pending"
    assert job.estimated_seconds == 3
    assert api.requests[0][3]["webhook_url"] == "https://hooks.test/done"
    assert done.status == "completed"
    assert [j.id for j in jobs] == ["job-1"]


@pytest.mark.asyncio
async def test_stream(api):
    async with serve(api.app) as url:
        async with make_client(url) as client:
            async with await client.stream(text="Hello") as response:
                assert response.headers["Content-Type"] == "audio/mpeg"
                chunks = [chunk async for chunk in response.content.iter_chunked(1024)]

    assert b"".join(chunks) == b"chunk-1chunk-2"
    assert api.requests[0][3] == {"text": "Hello", "model": "standard", "format": "mp3"}


@pytest.mark.asyncio
async def test_stream_rejects_non_mp3_before_sending(api):
    async with serve(api.app) as url:
        async with make_client(url) as client:
            with pytest.raises(StreamingFormatError):
                await client.stream(text="Hello", format="wav")

    assert api.requests == []


@pytest.mark.asyncio
async def test_dialogue(api):
    lines = [
        DialogueLine(text="Hi!", voice="af_heart", exaggeration=0.7),
        DialogueLine(text="Hello.", voice="am_adam", language="fr"),
    ]

    async with serve(api.app) as url:
        async with make_client(url) as client:
            result = await client.dialogue(lines, gap_ms=250)

    assert result.audio_url == GENERATED["audio_url"]
    assert api.requests[0][3] == {
        "model": "pro",
        "lines": [
            {"text": "Hi!", "voice": "af_heart", "language": "en", "exaggeration": 0.7},
            {"text": "Hello.", "voice": "am_adam", "language": "fr"},
        ],
        "gap_ms": 250,
    }


@pytest.mark.asyncio
async def test_dialogue_validation():
    async with make_client("http://127.0.0.1:1") as client:
        with pytest.raises(LeanvoxError, match="at least 2 lines"):
            await client.dialogue([DialogueLine(text="solo")])
        with pytest.raises(LeanvoxError, match="model must be"):
            await client.dialogue([DialogueLine(text="a"), DialogueLine(text="b")], model="ultra")


@pytest.mark.asyncio
async def test_retries_transient_errors(api):
    async with serve(api.app) as url:
        async with make_client(url) as client:
            assert await client._executor.request("GET", "/v1/flaky") == {"ok": True}


@pytest.mark.asyncio
async def test_voices(api, tmp_path):
    async with serve(api.app) as url:
        async with make_client(url) as client:
            voices = await client.voices.list(model="pro")
            all_voices = await client.voices.list()
            cloned = await client.voices.clone("Me", audio=b"RIFF0000", description="my voice")
            deleted = await client.voices.delete("cloned_1")

    assert [v.voice_id for v in voices.standard_voices] == ["af_heart"]
    assert voices.pro_voices[0].unlock_cost_cents == 100
    assert voices.cloned_voices == []
    assert all_voices.standard_voices[0].name == "Heart"
    assert cloned.voice_id == "cloned_1"
    assert deleted is None
    assert api.requests[0][2] == {"model": "pro"}
    assert api.requests[1][2] == {}
    assert api.requests[2][3] == {"name": "Me", "size": 8}
    assert api.requests[3][:2] == ("DELETE", "/v1/voices/cloned_1")


@pytest.mark.asyncio
async def test_voice_clone_requires_one_audio_source():
    async with make_client("http://127.0.0.1:1") as client:
        with pytest.raises(LeanvoxError):
            await client.voices.clone("Me")
        with pytest.raises(LeanvoxError):
            await client.voices.clone("Me", audio=b"x", audio_base64="eA==")


@pytest.mark.asyncio
async def test_voice_clone_from_base64_sends_no_file_part():
    transport = FakeTransport(success(200, {"voice_id": "cloned_2", "name": "Me"}))
    executor = RequestExecutor(transport, ConnectionConfig(api_key=VALID_KEY))

    cloned = await VoicesResource(executor).clone("Me", audio_base64="UklGRg==", auto_unlock=True)

    assert cloned.voice_id == "cloned_2"
    spec = transport.calls[0][0]
    assert spec.path == "/v1/voices/clone"
    assert spec.multipart == {"name": "Me", "auto_unlock": "true", "audio_base64": "UklGRg=="}


@pytest.mark.asyncio
async def test_extract_text_from_path(api, tmp_path):
    document = tmp_path / "chapter1.txt"
    document.write_text("Once upon a time")

    async with serve(api.app) as url:
        async with make_client(url) as client:
            result = await client.files.extract_text(str(document))

    assert result.text == "Once upon a time"
    assert result.filename == "chapter1.txt"
    assert result.char_count == 16
    assert not result.truncated


@pytest.mark.asyncio
async def test_generations_and_account(api):
    async with serve(api.app) as url:
        async with make_client(url) as client:
            generations = await client.generations.list(limit=10, offset=0)
            balance = await client.account.balance()
            usage = await client.account.usage(days=7)

    assert generations.total == 1
    assert generations.generations[0].cost_cents == 2
    assert balance.balance_cents == 500
    assert balance.total_spent_cents == 1200
    assert usage.entries == [{"day": "2026-10-01", "characters": 10}]
    assert api.requests[0][2] == {"limit": "10", "offset": "0"}
    assert api.requests[1][2] == {"days": "7"}


@pytest.mark.asyncio
async def test_download_and_save(api, tmp_path):
    async with serve(api.app) as url:
        async with make_client(url) as client:
            result = await client.generate(text="Hello world")
        result.audio_url = f"{url}/audio.mp3"
        audio = await result.download()
        await result.save(str(tmp_path / "out.mp3"))

    assert audio == b"ID3-audio"
    assert (tmp_path / "out.mp3").read_bytes() == b"ID3-audio"
